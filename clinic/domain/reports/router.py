"""Report router - FastAPI endpoints for dashboards and analytics"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from ...shared.schemas import ApiResponse
from .schemas import DashboardStats, DoctorPerformance, PatientAnalytics, RevenueReport
from .service import ReportService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reports", tags=["Reports"])


def get_report_service(db: Session = Depends(get_db)) -> ReportService:
    """Dependency injection for ReportService"""
    return ReportService(db)


@router.get("/dashboard", response_model=ApiResponse[DashboardStats])
async def get_dashboard(
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    current_user: User = Depends(get_current_user),
    service: ReportService = Depends(get_report_service),
):
    """Headline figures for the window (default: current month)"""
    return {"success": True, "data": service.get_dashboard(start_date, end_date)}


@router.get("/revenue", response_model=ApiResponse[RevenueReport])
async def get_revenue(
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    current_user: User = Depends(get_current_user),
    service: ReportService = Depends(get_report_service),
):
    return {"success": True, "data": service.get_revenue(start_date, end_date)}


@router.get("/patients", response_model=ApiResponse[PatientAnalytics])
async def get_patient_analytics(
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    current_user: User = Depends(get_current_user),
    service: ReportService = Depends(get_report_service),
):
    return {"success": True, "data": service.get_patient_analytics(start_date, end_date)}


@router.get("/doctors", response_model=ApiResponse[list[DoctorPerformance]])
async def get_doctor_performance(
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    current_user: User = Depends(get_current_user),
    service: ReportService = Depends(get_report_service),
):
    return {"success": True, "data": service.get_doctor_performance(start_date, end_date)}
