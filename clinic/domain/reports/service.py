"""Report service - dashboard and analytics aggregates"""

import calendar
import logging
from collections import defaultdict
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from ...exceptions import ValidationError
from ...models import UserRole
from ...shared.money import to_money
from ...shared.schemas import UserSummary
from ...shared.time_utils import end_of_day, start_of_day, utcnow
from ..billing.schemas import PaymentDetailResponse
from ..inventory.repository import InventoryRepository
from .repository import ReportRepository
from .schemas import (
    DashboardStats,
    DoctorPerformance,
    MethodRevenue,
    MonthlyRevenue,
    PatientAnalytics,
    PatientAppointmentCount,
    ReportWindow,
    RevenueReport,
    TreatmentTypeCount,
)

logger = logging.getLogger(__name__)


def current_month_window(today: Optional[date] = None) -> tuple[datetime, datetime]:
    today = today or utcnow().date()
    last_day = calendar.monthrange(today.year, today.month)[1]
    return (
        start_of_day(today.replace(day=1)),
        end_of_day(today.replace(day=last_day)),
    )


def resolve_window(start: Optional[datetime], end: Optional[datetime]) -> tuple[datetime, datetime]:
    """Default to the current calendar month; reject inverted windows"""
    default_start, default_end = current_month_window()
    start = start or default_start
    end = end or default_end
    if start > end:
        raise ValidationError("startDate must not be after endDate")
    return start, end


class ReportService:
    """Service layer for reports"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ReportRepository()

    def get_dashboard(self, start: Optional[datetime] = None, end: Optional[datetime] = None) -> DashboardStats:
        start, end = resolve_window(start, end)
        today = utcnow().date()
        year_start = start_of_day(date(today.year, 1, 1))
        year_end = end_of_day(date(today.year, 12, 31))

        by_month: dict[int, Decimal] = defaultdict(lambda: Decimal("0.00"))
        for paid_at, amount in self.repo.payment_amounts(self.db, year_start, year_end):
            by_month[paid_at.month] += to_money(amount)

        return DashboardStats(
            window=ReportWindow(start=start, end=end),
            total_patients=self.repo.count_active_patients(self.db),
            total_appointments=self.repo.count_appointments(self.db, start, end),
            total_revenue=to_money(self.repo.sum_payments(self.db, start, end)),
            today_appointments=self.repo.count_appointments(
                self.db, start_of_day(today), end_of_day(today), active_only=True
            ),
            pending_invoices=self.repo.count_open_invoices(self.db),
            low_stock_items=InventoryRepository.count_low_stock(self.db),
            revenue_by_month=[
                MonthlyRevenue(month=month, revenue=by_month[month]) for month in sorted(by_month)
            ],
            top_treatments=[
                TreatmentTypeCount(treatment_type=treatment_type, count=count)
                for treatment_type, count in self.repo.top_treatment_types(self.db, start, end)
            ],
        )

    def get_revenue(self, start: Optional[datetime] = None, end: Optional[datetime] = None) -> RevenueReport:
        start, end = resolve_window(start, end)
        payments = self.repo.get_payments(self.db, start, end)
        return RevenueReport(
            window=ReportWindow(start=start, end=end),
            payments=[PaymentDetailResponse.model_validate(p) for p in payments],
            revenue_by_method=[
                MethodRevenue(method=method, revenue=to_money(total))
                for method, total in self.repo.revenue_by_method(self.db, start, end)
            ],
            total_revenue=sum((to_money(p.amount) for p in payments), Decimal("0.00")),
        )

    def get_patient_analytics(
        self, start: Optional[datetime] = None, end: Optional[datetime] = None
    ) -> PatientAnalytics:
        start, end = resolve_window(start, end)
        return PatientAnalytics(
            window=ReportWindow(start=start, end=end),
            new_patients=self.repo.count_new_patients(self.db, start, end),
            top_patients=[
                PatientAppointmentCount(
                    patient_id=patient_id,
                    first_name=first_name,
                    last_name=last_name,
                    appointment_count=count,
                )
                for patient_id, first_name, last_name, count in self.repo.top_patients(self.db, start, end)
            ],
        )

    def get_doctor_performance(
        self, start: Optional[datetime] = None, end: Optional[datetime] = None
    ) -> list[DoctorPerformance]:
        start, end = resolve_window(start, end)
        rows = self.repo.treatments_by_doctor(self.db, start, end)
        doctors = {
            u.id: u
            for u in self.repo.get_users(self.db, [doctor_id for doctor_id, _, _ in rows])
            if u.role == UserRole.DOCTOR
        }
        return [
            DoctorPerformance(
                doctor=UserSummary.model_validate(doctors[doctor_id]) if doctor_id in doctors else None,
                doctor_id=doctor_id,
                treatment_count=count,
                total_revenue=to_money(total),
            )
            for doctor_id, count, total in sorted(rows, key=lambda row: row[1], reverse=True)
        ]
