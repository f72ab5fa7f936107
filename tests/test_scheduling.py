"""
Chair scheduling: half-open overlap, cancellation freeing slots, lifecycle
"""

from datetime import date, datetime

import pytest

from clinic.domain.appointments.schemas import AppointmentCreate, AppointmentUpdate
from clinic.domain.appointments.service import AppointmentService, intervals_overlap
from clinic.exceptions import ConflictError, ValidationError
from clinic.models import AppointmentStatus

DAY = date(2030, 1, 15)


def at(hour: int, minute: int = 0) -> datetime:
    return datetime(DAY.year, DAY.month, DAY.day, hour, minute)


def booking(patient_id, chair=1, start=(10, 0), end=(10, 30), **extra):
    return AppointmentCreate(
        patient_id=patient_id, chair_number=chair, start_time=at(*start), end_time=at(*end), **extra
    )


@pytest.fixture
def service(db):
    return AppointmentService(db, chair_count=3)


class TestIntervalsOverlap:
    def test_partial_overlap(self):
        assert intervals_overlap(at(10), at(11), at(10, 30), at(11, 30))

    def test_containment(self):
        assert intervals_overlap(at(10), at(12), at(10, 30), at(11))

    def test_touching_boundaries_do_not_overlap(self):
        assert not intervals_overlap(at(10), at(10, 30), at(10, 30), at(11))
        assert not intervals_overlap(at(10, 30), at(11), at(10), at(10, 30))


class TestChairConflicts:
    def test_overlapping_booking_on_same_chair_is_rejected(self, service, patient):
        first = service.create_appointment(booking(patient.id))

        with pytest.raises(ConflictError) as exc_info:
            service.create_appointment(booking(patient.id, start=(10, 15), end=(10, 45)))

        assert exc_info.value.status_code == 400
        assert exc_info.value.context["conflictingAppointmentId"] == first.id

    def test_back_to_back_bookings_are_allowed(self, service, patient):
        service.create_appointment(booking(patient.id))
        second = service.create_appointment(booking(patient.id, start=(10, 30), end=(11, 0)))

        assert second.status == AppointmentStatus.SCHEDULED

    def test_same_slot_on_another_chair_is_allowed(self, service, patient):
        service.create_appointment(booking(patient.id, chair=1))
        other = service.create_appointment(booking(patient.id, chair=2))

        assert other.chair_number == 2

    def test_cancelled_appointment_frees_its_slot(self, service, patient):
        first = service.create_appointment(booking(patient.id))
        service.cancel(first.id, reason="Patient called")

        replacement = service.create_appointment(booking(patient.id))
        assert replacement.id != first.id
        assert "Cancelled: Patient called" in service.get_appointment(first.id).notes

    def test_no_show_frees_its_slot(self, service, patient):
        first = service.create_appointment(booking(patient.id))
        service.mark_no_show(first.id)

        service.create_appointment(booking(patient.id))

    def test_reschedule_ignores_itself(self, service, patient):
        appointment = service.create_appointment(booking(patient.id))
        moved = service.update_appointment(
            appointment.id, AppointmentUpdate(start_time=at(10, 15), end_time=at(10, 45))
        )

        assert moved.start_time == at(10, 15)

    def test_reschedule_into_occupied_slot_is_rejected(self, service, patient):
        service.create_appointment(booking(patient.id))
        later = service.create_appointment(booking(patient.id, start=(11, 0), end=(11, 30)))

        with pytest.raises(ConflictError):
            service.update_appointment(later.id, AppointmentUpdate(start_time=at(10, 20)))

        assert service.get_appointment(later.id).start_time == at(11, 0)


class TestSlotValidation:
    @pytest.mark.parametrize("chair", [0, 4, -1])
    def test_chair_out_of_range(self, service, patient, chair):
        with pytest.raises(ValidationError) as exc_info:
            service.create_appointment(booking(patient.id, chair=chair))
        assert "Invalid chair number" in exc_info.value.message

    @pytest.mark.parametrize("start,end", [((11, 0), (10, 0)), ((10, 0), (10, 0))])
    def test_end_must_follow_start(self, service, patient, start, end):
        with pytest.raises(ValidationError):
            service.create_appointment(booking(patient.id, start=start, end=end))

    @pytest.mark.parametrize("chair", [0, 4])
    def test_reschedule_to_chair_out_of_range(self, service, patient, chair):
        appointment = service.create_appointment(booking(patient.id))

        with pytest.raises(ValidationError):
            service.update_appointment(appointment.id, AppointmentUpdate(chair_number=chair))

        assert service.get_appointment(appointment.id).chair_number == 1

    def test_reschedule_to_inverted_interval(self, service, patient):
        appointment = service.create_appointment(booking(patient.id))

        with pytest.raises(ValidationError):
            service.update_appointment(appointment.id, AppointmentUpdate(end_time=at(9, 0)))

    def test_cancelling_move_still_validates_the_slot(self, service, patient):
        appointment = service.create_appointment(booking(patient.id))

        with pytest.raises(ValidationError):
            service.update_appointment(
                appointment.id,
                AppointmentUpdate(chair_number=99, status=AppointmentStatus.CANCELLED),
            )

        stored = service.get_appointment(appointment.id)
        assert stored.chair_number == 1
        assert stored.status == AppointmentStatus.SCHEDULED

    def test_cancelling_move_skips_the_conflict_check(self, service, patient):
        service.create_appointment(booking(patient.id, chair=2))
        appointment = service.create_appointment(booking(patient.id))

        cancelled = service.update_appointment(
            appointment.id, AppointmentUpdate(chair_number=2, status=AppointmentStatus.CANCELLED)
        )
        assert cancelled.chair_number == 2
        assert cancelled.status == AppointmentStatus.CANCELLED


class TestUpdateFields:
    def test_explicit_null_clears_doctor_and_notes(self, service, patient, doctor):
        appointment = service.create_appointment(
            booking(patient.id, doctor_id=doctor.id, notes="Bring X-rays")
        )

        updated = service.update_appointment(
            appointment.id, AppointmentUpdate(doctor_id=None, notes=None)
        )
        assert updated.doctor_id is None
        assert updated.notes is None

    def test_omitted_fields_are_kept(self, service, patient, doctor):
        appointment = service.create_appointment(
            booking(patient.id, doctor_id=doctor.id, notes="Bring X-rays")
        )

        updated = service.update_appointment(appointment.id, AppointmentUpdate(notes="Sensitive tooth"))
        assert updated.doctor_id == doctor.id
        assert updated.notes == "Sensitive tooth"

    def test_null_slot_fields_keep_the_stored_slot(self, service, patient):
        appointment = service.create_appointment(booking(patient.id))

        updated = service.update_appointment(
            appointment.id, AppointmentUpdate(chair_number=None, start_time=None)
        )
        assert updated.chair_number == 1
        assert updated.start_time == at(10, 0)


class TestLifecycle:
    def test_happy_path(self, service, patient):
        appointment = service.create_appointment(booking(patient.id))

        checked_in = service.check_in(appointment.id)
        assert checked_in.status == AppointmentStatus.CHECKED_IN
        assert checked_in.checked_in_at is not None

        assert service.start_treatment(appointment.id).status == AppointmentStatus.IN_PROGRESS

        completed = service.check_out(appointment.id)
        assert completed.status == AppointmentStatus.COMPLETED
        assert completed.checked_out_at is not None

    def test_terminal_states_are_final(self, service, patient):
        appointment = service.create_appointment(booking(patient.id))
        service.cancel(appointment.id)

        with pytest.raises(ValidationError):
            service.check_in(appointment.id)

    def test_cannot_check_out_before_check_in(self, service, patient):
        appointment = service.create_appointment(booking(patient.id))

        with pytest.raises(ValidationError):
            service.check_out(appointment.id)


class TestAppointmentApi:
    def payload(self, patient_id, start="2030-01-15T10:00:00", end="2030-01-15T10:30:00", chair=1):
        return {"patientId": patient_id, "chairNumber": chair, "startTime": start, "endTime": end}

    def test_requires_authentication(self, client, patient):
        response = client.post("/api/appointments", json=self.payload(patient.id))
        assert response.status_code == 401
        assert response.json() == {"success": False, "message": "No token provided"}

    def test_book_and_conflict(self, client, headers, patient, doctor):
        payload = {**self.payload(patient.id), "doctorId": doctor.id}
        created = client.post("/api/appointments", json=payload, headers=headers)
        assert created.status_code == 201
        body = created.json()
        assert body["success"] is True
        assert body["data"]["status"] == "SCHEDULED"
        assert body["data"]["patient"]["firstName"] == "Asha"
        assert body["data"]["doctor"]["id"] == doctor.id

        clash = client.post(
            "/api/appointments",
            json=self.payload(patient.id, start="2030-01-15T10:29:00", end="2030-01-15T11:00:00"),
            headers=headers,
        )
        assert clash.status_code == 400
        error = clash.json()
        assert error["success"] is False
        assert error["message"] == "Appointment conflict: Chair is already booked for this time"
        assert error["conflictingAppointmentId"] == body["data"]["id"]

    def test_timezone_offsets_are_normalized_to_utc(self, client, headers, patient):
        client.post("/api/appointments", json=self.payload(patient.id), headers=headers)

        # 15:30+05:30 is 10:00 UTC
        clash = client.post(
            "/api/appointments",
            json=self.payload(
                patient.id, start="2030-01-15T15:30:00+05:30", end="2030-01-15T16:00:00+05:30"
            ),
            headers=headers,
        )
        assert clash.status_code == 400

    def test_non_doctor_cannot_be_assigned(self, client, headers, patient, admin):
        payload = {**self.payload(patient.id), "doctorId": admin.id}
        response = client.post("/api/appointments", json=payload, headers=headers)
        assert response.status_code == 404
        assert response.json()["message"] == "Doctor not found"

    def test_unknown_patient(self, client, headers):
        response = client.post("/api/appointments", json=self.payload(9999), headers=headers)
        assert response.status_code == 404

    def test_availability(self, client, headers, patient):
        client.post("/api/appointments", json=self.payload(patient.id, chair=2), headers=headers)

        response = client.get("/api/appointments/availability?date=2030-01-15", headers=headers)
        assert response.status_code == 200
        chairs = {c["chairNumber"]: c["booked"] for c in response.json()["data"]}
        assert set(chairs) == {1, 2, 3}
        assert chairs[1] == []
        assert chairs[2][0]["startTime"] == "2030-01-15T10:00:00"
        assert chairs[2][0]["endTime"] == "2030-01-15T10:30:00"

    def test_list_filters_by_chair(self, client, headers, patient):
        client.post("/api/appointments", json=self.payload(patient.id, chair=1), headers=headers)
        client.post("/api/appointments", json=self.payload(patient.id, chair=3), headers=headers)

        response = client.get("/api/appointments?chairNumber=3", headers=headers)
        assert [a["chairNumber"] for a in response.json()["data"]] == [3]

    def test_lifecycle_endpoints(self, client, headers, patient):
        created = client.post("/api/appointments", json=self.payload(patient.id), headers=headers)
        appointment_id = created.json()["data"]["id"]

        assert client.post(f"/api/appointments/{appointment_id}/check-in", headers=headers).json()[
            "data"
        ]["status"] == "CHECKED_IN"
        assert client.post(f"/api/appointments/{appointment_id}/check-out", headers=headers).json()[
            "data"
        ]["status"] == "COMPLETED"

        again = client.post(f"/api/appointments/{appointment_id}/cancel", headers=headers)
        assert again.status_code == 400
        assert again.json()["from"] == "COMPLETED"

    def test_cancel_with_reason(self, client, headers, patient):
        created = client.post("/api/appointments", json=self.payload(patient.id), headers=headers)
        appointment_id = created.json()["data"]["id"]

        response = client.post(
            f"/api/appointments/{appointment_id}/cancel", json={"reason": "Fever"}, headers=headers
        )
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "CANCELLED"
        assert response.json()["data"]["notes"] == "Cancelled: Fever"


def test_morning_slots_on_one_chair(service, patient):
    service.create_appointment(booking(patient.id, start=(9, 0), end=(9, 15)))

    with pytest.raises(ConflictError):
        service.create_appointment(booking(patient.id, start=(9, 10), end=(9, 20)))

    touching = service.create_appointment(booking(patient.id, start=(9, 15), end=(9, 30)))
    assert touching.start_time == at(9, 15)
