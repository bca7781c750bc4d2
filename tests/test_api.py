"""
HTTP tests for the lecture endpoints.

Every scheduling endpoint answers with the same envelope
{success, code, message, data}; the status code follows the result code.
"""

import unittest

from fastapi.testclient import TestClient

from app.auth import sign_token
from app.database import get_db
from app.main import app
from tests.factories import lecture_by_number, make_course, make_session_factory, make_trainer, make_user


class ApiTestCase(unittest.TestCase):
    def setUp(self) -> None:
        SessionLocal = make_session_factory()

        def override_get_db():
            db = SessionLocal()
            try:
                yield db
            finally:
                db.close()

        app.dependency_overrides[get_db] = override_get_db
        self.client = TestClient(app)

        self.db = SessionLocal()
        self.trainer = make_trainer(self.db)
        self.course = make_course(self.db, self.trainer)
        self.cs_user = make_user(self.db, "customer_service")
        self.finance_user = make_user(self.db, "finance")

    def tearDown(self) -> None:
        self.db.close()
        app.dependency_overrides.clear()

    def auth(self, token_type: str, subject_id: int) -> dict:
        return {"Authorization": f"Bearer {sign_token(token_type, subject_id)}"}

    @property
    def cs_headers(self) -> dict:
        return self.auth("user", self.cs_user.id)

    def lecture_id(self, number: int) -> int:
        return lecture_by_number(self.db, self.course, number).id


class TestPostponeEndpoint(ApiTestCase):
    def test_postpone_success(self) -> None:
        lecture_id = self.lecture_id(3)
        response = self.client.post(
            f"/lectures/{lecture_id}/postpone",
            json={"new_date": "2024-02-05", "new_time": "16:00", "postponed_by": "trainer", "reason": "Sick"},
            headers=self.cs_headers,
        )

        self.assertEqual(response.status_code, 200, response.text)
        body = response.json()
        self.assertTrue(body["success"])
        self.assertEqual(body["code"], "success")
        self.assertEqual(body["data"]["original_lecture"]["attendance"], "postponed_by_trainer")
        self.assertEqual(body["data"]["new_lecture"]["lecture_number"], 9)
        self.assertEqual(body["data"]["new_lecture"]["makeup_for"], lecture_id)
        self.assertEqual(body["data"]["new_lecture"]["date"], "2024-02-05")

    def test_time_is_normalised(self) -> None:
        response = self.client.post(
            f"/lectures/{self.lecture_id(1)}/postpone",
            json={"new_date": "2024-02-05", "new_time": "9:05", "postponed_by": "student"},
            headers=self.cs_headers,
        )
        self.assertEqual(response.json()["data"]["new_lecture"]["time"], "09:05")

    def test_anonymous_is_forbidden(self) -> None:
        response = self.client.post(
            f"/lectures/{self.lecture_id(1)}/postpone",
            json={"new_date": "2024-02-05", "postponed_by": "trainer"},
        )
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()["code"], "permission_denied")

    def test_forged_token_is_anonymous(self) -> None:
        response = self.client.post(
            f"/lectures/{self.lecture_id(1)}/postpone",
            json={"new_date": "2024-02-05", "postponed_by": "trainer"},
            headers={"Authorization": f"Bearer user-{self.cs_user.id}-1700000000-{'f' * 16}"},
        )
        self.assertEqual(response.status_code, 403)

    def test_finance_is_forbidden(self) -> None:
        response = self.client.post(
            f"/lectures/{self.lecture_id(1)}/postpone",
            json={"new_date": "2024-02-05", "postponed_by": "trainer"},
            headers=self.auth("user", self.finance_user.id),
        )
        self.assertEqual(response.status_code, 403)

    def test_invalid_body(self) -> None:
        for payload in (
            {"new_date": "2024-02-05", "new_time": "25:00", "postponed_by": "trainer"},
            {"new_date": "not-a-date", "postponed_by": "trainer"},
            {"new_date": "2024-02-05", "postponed_by": "weather"},
            {"postponed_by": "trainer"},
        ):
            response = self.client.post(
                f"/lectures/{self.lecture_id(1)}/postpone", json=payload, headers=self.cs_headers
            )
            self.assertEqual(response.status_code, 422, payload)
            self.assertEqual(response.json()["code"], "invalid_request")

    def test_business_rejection_is_422(self) -> None:
        lecture_id = self.lecture_id(1)
        payload = {"new_date": "2024-02-05", "postponed_by": "trainer"}
        self.client.post(f"/lectures/{lecture_id}/postpone", json=payload, headers=self.cs_headers)

        response = self.client.post(f"/lectures/{lecture_id}/postpone", json=payload, headers=self.cs_headers)

        self.assertEqual(response.status_code, 422)
        self.assertEqual(response.json()["code"], "cannot_postpone")

    def test_unknown_lecture_is_404(self) -> None:
        response = self.client.post(
            "/lectures/9999/postpone",
            json={"new_date": "2024-02-05", "postponed_by": "trainer"},
            headers=self.cs_headers,
        )
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["code"], "not_found")

    def test_conflict_lists_blocking_lectures(self) -> None:
        other = make_course(self.db, self.trainer, title="Evening", lecture_days=("tue",), lecture_time="10:00")
        blocked = lecture_by_number(self.db, other, 1)

        response = self.client.post(
            f"/lectures/{blocked.id}/postpone",
            json={"new_date": "2024-01-15", "new_time": "14:00", "postponed_by": "trainer"},
            headers=self.auth("trainer", self.trainer.id),
        )

        self.assertEqual(response.status_code, 422)
        body = response.json()
        self.assertEqual(body["code"], "time_conflict")
        self.assertEqual(body["data"]["conflicts"][0]["lecture_id"], self.lecture_id(5))


class TestOtherEndpoints(ApiTestCase):
    def test_check_conflicts_preview(self) -> None:
        other = make_course(self.db, self.trainer, title="Evening", lecture_days=("tue",), lecture_time="10:00")
        response = self.client.post(
            f"/lectures/{lecture_by_number(self.db, other, 1).id}/check-conflicts",
            json={"new_date": "2024-01-15", "new_time": "14:00"},
            headers=self.auth("trainer", self.trainer.id),
        )
        self.assertEqual(response.status_code, 200, response.text)
        self.assertTrue(response.json()["data"]["has_conflict"])

    def test_cancel_and_detail(self) -> None:
        lecture_id = self.lecture_id(2)
        postponed = self.client.post(
            f"/lectures/{lecture_id}/postpone",
            json={"new_date": "2024-02-05", "postponed_by": "holiday"},
            headers=self.cs_headers,
        ).json()
        makeup_id = postponed["data"]["new_lecture"]["id"]

        detail = self.client.get(f"/lectures/{lecture_id}").json()
        self.assertEqual(detail["makeup_lecture"]["id"], makeup_id)
        makeup_detail = self.client.get(f"/lectures/{makeup_id}").json()
        self.assertEqual(makeup_detail["original_lecture"]["id"], lecture_id)

        response = self.client.post(f"/lectures/{lecture_id}/cancel-postponement", headers=self.cs_headers)
        self.assertEqual(response.status_code, 200, response.text)
        self.assertEqual(response.json()["data"]["lecture"]["attendance"], "pending")
        self.assertEqual(self.client.get(f"/lectures/{makeup_id}").status_code, 404)

    def test_stats(self) -> None:
        response = self.client.get(
            f"/lectures/{self.lecture_id(1)}/postponement-stats",
            headers=self.auth("user", self.finance_user.id),
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["data"]["remaining"], 3)

    def test_anonymous_gets_403_for_missing_and_existing_lectures(self) -> None:
        for lecture_id in (self.lecture_id(1), 9999):
            response = self.client.get(f"/lectures/{lecture_id}/postponement-stats")
            self.assertEqual(response.status_code, 403, lecture_id)
            self.assertEqual(response.json()["code"], "permission_denied")

    def test_record_attendance(self) -> None:
        response = self.client.put(
            f"/lectures/{self.lecture_id(1)}/attendance",
            json={"attendance": "present"},
            headers=self.auth("trainer", self.trainer.id),
        )
        self.assertEqual(response.status_code, 200, response.text)
        self.assertEqual(response.json()["data"]["lecture"]["attendance"], "present")

    def test_generate_schedule(self) -> None:
        course = make_course(self.db, self.trainer, title="New", lectures_count=3, generate=False)
        response = self.client.post(f"/lectures/courses/{course.id}/schedule", headers=self.cs_headers)
        self.assertEqual(response.status_code, 200, response.text)
        self.assertEqual(len(response.json()["data"]["lectures"]), 3)

    def test_health(self) -> None:
        self.assertEqual(self.client.get("/health").json(), {"status": "healthy"})


if __name__ == "__main__":
    unittest.main()
