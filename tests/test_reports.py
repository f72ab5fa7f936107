"""
Dashboard and analytics aggregates over the default (current month) window
"""

from datetime import date

import pytest

from clinic.domain.reports.service import current_month_window, resolve_window
from clinic.exceptions import ValidationError
from clinic.models import UserRole
from clinic.shared.time_utils import utcnow


class TestWindows:
    def test_current_month_window(self):
        start, end = current_month_window(date(2024, 2, 10))
        assert start.isoformat() == "2024-02-01T00:00:00"
        assert end.date() == date(2024, 2, 29)

    def test_inverted_window(self):
        start, end = current_month_window(date(2024, 2, 10))
        with pytest.raises(ValidationError):
            resolve_window(end, start)


@pytest.fixture
def activity(client, auth_headers, patient, doctor):
    """Two invoices, three payments, two treatments and an appointment this month"""
    headers = auth_headers[UserRole.RECEPTIONIST]
    first_of_month = utcnow().date().replace(day=1).isoformat()

    def invoice(amount):
        response = client.post(
            "/api/invoices",
            json={
                "patientId": patient.id,
                "taxRate": 0,
                "items": [{"description": "Consultation", "quantity": 1, "unitPrice": amount}],
            },
            headers=headers,
        )
        return response.json()["data"]["id"]

    paid, open_ = invoice(2500), invoice(1000)
    for invoice_id, amount, method in [(paid, 2000, "CASH"), (paid, 500, "UPI"), (open_, 300, "CASH")]:
        response = client.post(
            "/api/payments",
            json={"invoiceId": invoice_id, "amount": amount, "method": method},
            headers=headers,
        )
        assert response.status_code == 201

    for treatment_type, cost in [("Root Canal", 4500), ("Scaling", 800)]:
        client.post(
            "/api/treatments",
            json={
                "patientId": patient.id,
                "treatmentType": treatment_type,
                "description": treatment_type,
                "cost": cost,
            },
            headers=auth_headers[UserRole.DOCTOR],
        )

    client.post(
        "/api/appointments",
        json={
            "patientId": patient.id,
            "chairNumber": 1,
            "startTime": f"{first_of_month}T10:00:00",
            "endTime": f"{first_of_month}T10:30:00",
        },
        headers=headers,
    )

    client.post(
        "/api/inventory",
        json={"name": "Lidocaine", "category": "Drugs", "unit": "cartridge", "currentStock": 2, "minStockLevel": 5},
        headers=headers,
    )
    return {"paid": paid, "open": open_}


class TestReportsApi:
    def test_dashboard(self, client, headers, activity):
        response = client.get("/api/reports/dashboard", headers=headers)
        assert response.status_code == 200
        data = response.json()["data"]

        assert data["totalPatients"] == 1
        assert data["totalAppointments"] == 1
        assert data["totalRevenue"] == 2800.0
        assert data["pendingInvoices"] == 1
        assert data["lowStockItems"] == 1
        assert {"month": utcnow().month, "revenue": 2800.0} in data["revenueByMonth"]
        assert {t["treatmentType"] for t in data["topTreatments"]} == {"Root Canal", "Scaling"}

    def test_revenue(self, client, headers, activity):
        data = client.get("/api/reports/revenue", headers=headers).json()["data"]

        assert data["totalRevenue"] == 2800.0
        assert len(data["payments"]) == 3
        by_method = {row["method"]: row["revenue"] for row in data["revenueByMethod"]}
        assert by_method == {"CASH": 2300.0, "UPI": 500.0}

    def test_patient_analytics(self, client, headers, activity, patient):
        data = client.get("/api/reports/patients", headers=headers).json()["data"]

        assert data["newPatients"] == 1
        assert data["topPatients"][0]["patientId"] == patient.id
        assert data["topPatients"][0]["appointmentCount"] == 1

    def test_doctor_performance(self, client, headers, activity, doctor):
        data = client.get("/api/reports/doctors", headers=headers).json()["data"]

        assert len(data) == 1
        assert data[0]["doctorId"] == doctor.id
        assert data[0]["doctor"]["firstName"] == "Doctor"
        assert data[0]["treatmentCount"] == 2
        assert data[0]["totalRevenue"] == 5300.0

    def test_empty_window(self, client, headers, activity):
        data = client.get(
            "/api/reports/revenue?startDate=2001-01-01T00:00:00&endDate=2001-01-31T23:59:59",
            headers=headers,
        ).json()["data"]
        assert data["payments"] == []
        assert data["totalRevenue"] == 0.0

    def test_inverted_window_is_rejected(self, client, headers):
        response = client.get(
            "/api/reports/dashboard?startDate=2030-02-01T00:00:00&endDate=2030-01-01T00:00:00",
            headers=headers,
        )
        assert response.status_code == 400
