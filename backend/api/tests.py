import base64
import io
import json
from unittest.mock import patch

from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import Client, TestCase, override_settings
from django.urls import reverse
from PIL import Image

from health.exceptions import NetworkError
from health.tests import REPORT_JSON, SYMPTOM_JSON, fake_gateway, png_data_uri


def png_bytes() -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (16, 16), "red").save(buffer, format="PNG")
    return buffer.getvalue()


class ApiTestCase(TestCase):
    def setUp(self):
        self.client = Client()
        self.client.post(
            reverse("signin"),
            data=json.dumps({"mode": "signup", "name": "Ana", "email": "ana@example.com", "password": "pw"}),
            content_type="application/json",
        )

    def _post(self, name, payload, client=None):
        client = client or self.client
        return client.post(reverse(name), data=json.dumps(payload), content_type="application/json")


class ApiAccessTests(ApiTestCase):
    def test_endpoints_require_profile(self):
        anonymous = Client()
        for name in ("chat", "report-analyze", "symptom-analyze", "medication-interactions", "insights"):
            response = self._post(name, {}, client=anonymous)
            self.assertEqual(response.status_code, 403, name)

    @override_settings(GEMINI_API_KEY="")
    def test_missing_key_reports_disabled_ai(self):
        response = self._post("insights", {"metrics": {"sleepAvg": "7h"}})
        self.assertEqual(response.status_code, 503)
        body = response.json()
        self.assertEqual(body["error"], "configuration")
        self.assertTrue(body["ai_disabled"])


class ChatApiTests(ApiTestCase):
    @patch("health.gateway.get_gateway")
    def test_chat_reply_and_ticket_echo(self, mock_get_gateway):
        mock_get_gateway.return_value = fake_gateway(chat_reply="Drink water and rest.")
        response = self._post(
            "chat",
            {
                "message": "I have a headache",
                "history": [{"role": "model", "text": "Hello! How can I help?"}],
                "ticket": 7,
            },
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            response.json(),
            {"status": "success", "data": {"reply": "Drink water and rest.", "empty": False}, "ticket": 7},
        )
        _, history, image = mock_get_gateway.return_value.chat_reply.call_args[0]
        self.assertEqual(history[0].role, "model")
        self.assertIsNone(image)

    @patch("health.gateway.get_gateway")
    def test_chat_with_image_only(self, mock_get_gateway):
        mock_get_gateway.return_value = fake_gateway(chat_reply="That looks like a rash.")
        response = self._post("chat", {"image": png_data_uri()})
        self.assertEqual(response.status_code, 200)
        image = mock_get_gateway.return_value.chat_reply.call_args[0][2]
        self.assertEqual(image.mime_type, "image/png")

    @patch("health.gateway.get_gateway")
    def test_chat_failure_returns_connection_message(self, mock_get_gateway):
        mock_get_gateway.return_value = fake_gateway(chat_reply=NetworkError("timeout"))
        response = self._post("chat", {"message": "hi"})
        self.assertEqual(response.status_code, 503)
        self.assertEqual(response.json()["error"], "network")
        self.assertIn("trouble connecting", response.json()["data"]["reply"])

    def test_chat_validation(self):
        self.assertEqual(self._post("chat", {"message": "  "}).status_code, 400)
        self.assertEqual(self._post("chat", {"message": "hi", "history": "nope"}).status_code, 400)
        self.assertEqual(
            self._post("chat", {"message": "hi", "history": [{"role": "assistant", "text": "x"}]}).status_code,
            400,
        )
        self.assertEqual(self._post("chat", {"image": "data:image/gif;base64,R0lG"}).status_code, 400)

    def test_dictation_appends_or_reports_unsupported(self):
        merged = self._post("chat-dictation", {"supported": True, "draft": "My knee", "transcript": "hurts"})
        self.assertEqual(merged.json()["data"]["draft"], "My knee hurts")

        unsupported = self._post("chat-dictation", {"supported": False, "draft": "My knee"})
        self.assertEqual(unsupported.status_code, 409)
        self.assertEqual(unsupported.json()["message"], "Voice input is not supported in this browser.")
        self.assertEqual(unsupported.json()["data"]["draft"], "My knee")


class ReportApiTests(ApiTestCase):
    @patch("health.gateway.get_gateway")
    def test_multipart_upload_is_analyzed(self, mock_get_gateway):
        mock_get_gateway.return_value = fake_gateway(analyze_report=REPORT_JSON)
        upload = SimpleUploadedFile("report.png", png_bytes(), content_type="image/png")
        response = self.client.post(reverse("report-analyze"), {"report_file": upload})

        self.assertEqual(response.status_code, 200)
        data = response.json()["data"]
        self.assertEqual([f["testName"] for f in data["findings"]], ["Hemoglobin", "WBC"])
        self.assertIn("consult", data["disclaimer"])

        image = mock_get_gateway.return_value.analyze_report.call_args[0][0]
        self.assertEqual(base64.b64decode(image.data), png_bytes())

    @patch("health.gateway.get_gateway")
    def test_malformed_report_is_reported(self, mock_get_gateway):
        mock_get_gateway.return_value = fake_gateway(analyze_report='[{"testName": "Hb"}]')
        response = self._post("report-analyze", {"image": png_data_uri()})
        self.assertEqual(response.status_code, 502)
        body = response.json()
        self.assertEqual(body["error"], "malformed")
        self.assertEqual(body["message"], "Failed to analyze report. Please try again.")
        self.assertEqual(body["data"], {"findings": []})

    def test_report_requires_image(self):
        response = self._post("report-analyze", {})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["message"], "Upload a report photo.")


class SymptomApiTests(ApiTestCase):
    @patch("health.gateway.get_gateway")
    def test_symptoms_are_analyzed(self, mock_get_gateway):
        mock_get_gateway.return_value = fake_gateway(analyze_symptoms=SYMPTOM_JSON)
        response = self._post(
            "symptom-analyze",
            {"symptoms": "Fever", "duration": "2 days", "severity": 6, "history": "Asthma"},
        )
        self.assertEqual(response.status_code, 200)
        assessments = response.json()["data"]["assessments"]
        self.assertEqual(assessments[0]["severity"], "Low")

    @patch("health.gateway.get_gateway")
    def test_symptom_network_failure(self, mock_get_gateway):
        mock_get_gateway.return_value = fake_gateway(analyze_symptoms=NetworkError("timeout"))
        response = self._post("symptom-analyze", {"symptoms": "Fever", "severity": 6, "ticket": "t-1"})
        self.assertEqual(response.status_code, 503)
        body = response.json()
        self.assertEqual(body["error"], "network")
        self.assertEqual(body["message"], "Something went wrong. Please try again.")
        self.assertEqual(body["data"], {"assessments": []})
        self.assertEqual(body["ticket"], "t-1")

    @patch("health.gateway.get_gateway")
    def test_symptom_malformed_output(self, mock_get_gateway):
        mock_get_gateway.return_value = fake_gateway(analyze_symptoms="Probably a cold, rest up.")
        response = self._post("symptom-analyze", {"symptoms": "Fever", "severity": 6})
        self.assertEqual(response.status_code, 502)
        body = response.json()
        self.assertEqual(body["error"], "malformed")
        self.assertEqual(body["message"], "Something went wrong. Please try again.")
        self.assertFalse(body["ai_disabled"])

    def test_symptom_validation(self):
        self.assertEqual(self._post("symptom-analyze", {"symptoms": "Fever", "severity": 11}).status_code, 400)
        self.assertEqual(self._post("symptom-analyze", {"symptoms": "Fever", "severity": "x"}).status_code, 400)
        blank = self._post("symptom-analyze", {"symptoms": " ", "severity": 5})
        self.assertEqual(blank.status_code, 400)
        self.assertEqual(blank.json()["message"], "Please describe your symptoms.")

    @patch("health.gateway.get_gateway")
    def test_fractional_severity_is_rejected(self, mock_get_gateway):
        for severity in (7.9, True):
            response = self._post("symptom-analyze", {"symptoms": "Fever", "severity": severity})
            self.assertEqual(response.status_code, 400, severity)
            self.assertEqual(response.json()["message"], "severity must be a whole number between 1 and 10.")
        mock_get_gateway.assert_not_called()

    @patch("health.gateway.get_gateway")
    def test_integral_float_severity_is_accepted(self, mock_get_gateway):
        mock_get_gateway.return_value = fake_gateway(analyze_symptoms=SYMPTOM_JSON)
        response = self._post("symptom-analyze", {"symptoms": "Fever", "severity": 7.0})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(mock_get_gateway.return_value.analyze_symptoms.call_args[0][0].severity, 7)


class InteractionApiTests(ApiTestCase):
    @patch("health.gateway.get_gateway")
    def test_names_and_records_are_accepted(self, mock_get_gateway):
        mock_get_gateway.return_value = fake_gateway(check_interactions="Avoid taking them together.")
        response = self._post(
            "medication-interactions",
            {"medications": [{"name": "Aspirin", "time": "Morning"}, "Warfarin"]},
        )
        self.assertEqual(response.status_code, 200)
        data = response.json()["data"]
        self.assertTrue(data["checked"])
        self.assertEqual(data["medications"], ["Aspirin", "Warfarin"])
        self.assertEqual(data["warning"], "Avoid taking them together.")

    @patch("health.gateway.get_gateway")
    def test_single_name_is_not_checked(self, mock_get_gateway):
        response = self._post("medication-interactions", {"medications": ["Aspirin"]})
        self.assertFalse(response.json()["data"]["checked"])
        mock_get_gateway.assert_not_called()

    def test_medications_must_be_a_list(self):
        self.assertEqual(self._post("medication-interactions", {"medications": "Aspirin"}).status_code, 400)


class InsightsApiTests(ApiTestCase):
    @patch("health.gateway.get_gateway")
    def test_summary_and_step_highlights(self, mock_get_gateway):
        mock_get_gateway.return_value = fake_gateway(health_insights="Sleep improved this week.")
        metrics = {
            "steps": [{"day": "Mon", "steps": 9000}, {"day": "Tue", "steps": 4000}],
            "sleepAvg": "7h 12m",
        }
        response = self._post("insights", {"metrics": metrics})
        self.assertEqual(response.status_code, 200)
        data = response.json()["data"]
        self.assertEqual(data["summary"], "Sleep improved this week.")
        self.assertEqual([day["goal_met"] for day in data["steps"]], [True, False])

    def test_metrics_are_required(self):
        self.assertEqual(self._post("insights", {"metrics": {}}).status_code, 400)
