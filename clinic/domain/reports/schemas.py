"""Report schemas - read-only aggregates"""

from datetime import datetime
from typing import Optional

from ...models_invoice import PaymentMethod
from ...shared.schemas import CamelModel, Money, UserSummary
from ..billing.schemas import PaymentDetailResponse


class ReportWindow(CamelModel):
    start: datetime
    end: datetime


class MonthlyRevenue(CamelModel):
    month: int  # 1-12
    revenue: Money


class TreatmentTypeCount(CamelModel):
    treatment_type: str
    count: int


class DashboardStats(CamelModel):
    window: ReportWindow
    total_patients: int
    total_appointments: int
    total_revenue: Money
    today_appointments: int
    pending_invoices: int
    low_stock_items: int
    revenue_by_month: list[MonthlyRevenue]
    top_treatments: list[TreatmentTypeCount]


class MethodRevenue(CamelModel):
    method: PaymentMethod
    revenue: Money


class RevenueReport(CamelModel):
    window: ReportWindow
    payments: list[PaymentDetailResponse]
    revenue_by_method: list[MethodRevenue]
    total_revenue: Money


class PatientAppointmentCount(CamelModel):
    patient_id: int
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    appointment_count: int


class PatientAnalytics(CamelModel):
    window: ReportWindow
    new_patients: int
    top_patients: list[PatientAppointmentCount]


class DoctorPerformance(CamelModel):
    doctor: Optional[UserSummary] = None
    doctor_id: int
    treatment_count: int
    total_revenue: Money
