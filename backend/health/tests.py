import base64
import io
import json
from unittest.mock import Mock, patch

from django.core.management import CommandError, call_command
from django.test import Client, SimpleTestCase, TestCase, override_settings
from django.urls import reverse
from PIL import Image

from .contracts import (
    decode_report_findings,
    decode_symptom_assessments,
    has_interaction_warning,
    strip_fences,
)
from .dictation import DictationCapability, append_transcript
from .exceptions import ConfigurationError, MalformedResponseError, NetworkError
from .gateway import ChatTurn, HealthGateway, SymptomIntake
from .guardrails.input_guardrails import run_image_guardrails
from .images import ImageInputError, InlineImage, from_data_uri
from .medications import Medication, add_medications, group_by_slot, remove, toggle_taken, unique_names
from .prompts import PERSONA_INSTRUCTION
from .schemas import REPORT_FIELDS, SYMPTOM_FIELDS, report_findings_schema, symptom_assessments_schema
from . import services
from .symptoms import SymptomWizard

REPORT_JSON = json.dumps(
    [
        {
            "testName": "Hemoglobin",
            "value": "11.2",
            "unit": "g/dL",
            "status": "Abnormal",
            "explanation": "Slightly below the usual range.",
        },
        {
            "testName": "WBC",
            "value": "6500",
            "unit": "cells/uL",
            "status": "Normal",
            "explanation": "Within range.",
        },
    ]
)

SYMPTOM_JSON = json.dumps(
    [
        {
            "condition": "Common cold",
            "probability": "60%",
            "description": "Runny nose and mild fever match a viral cold.",
            "recommendation": "Rest and fluids.",
            "severity": "Low",
        },
        {
            "condition": "Influenza",
            "probability": "Medium",
            "description": "Fever with body aches.",
            "recommendation": "See a doctor if fever persists.",
            "severity": "Moderate",
        },
    ]
)


def png_data_uri(size=(32, 32)) -> str:
    buffer = io.BytesIO()
    Image.new("RGB", size, "white").save(buffer, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buffer.getvalue()).decode("utf-8")


def fake_gateway(**methods) -> Mock:
    gateway = Mock(spec=HealthGateway)
    gateway.is_configured = True
    for name, value in methods.items():
        method = getattr(gateway, name)
        if isinstance(value, Exception):
            method.side_effect = value
        else:
            method.return_value = value
    return gateway


class ResponseContractTests(SimpleTestCase):
    def test_strip_fences_removes_json_markers(self):
        self.assertEqual(strip_fences('```json\n[{"a": 1}]\n```'), '[{"a": 1}]')
        self.assertEqual(strip_fences("```\n[]\n```  "), "[]")
        self.assertEqual(strip_fences("[]"), "[]")

    def test_fenced_report_decodes_to_declared_fields(self):
        decoded = decode_report_findings(f"```json\n{REPORT_JSON}\n```")
        self.assertTrue(decoded.ok)
        self.assertEqual(len(decoded.records), 2)
        self.assertEqual(tuple(decoded.records[0].to_dict().keys()), REPORT_FIELDS)
        self.assertEqual(decoded.records[0].test_name, "Hemoglobin")
        self.assertEqual(decoded.records[0].status, "Abnormal")

    def test_fenced_symptoms_decode_to_declared_fields(self):
        decoded = decode_symptom_assessments(f"```\n{SYMPTOM_JSON}\n```")
        self.assertTrue(decoded.ok)
        self.assertEqual(len(decoded.records), 2)
        self.assertEqual(tuple(decoded.records[1].to_dict().keys()), SYMPTOM_FIELDS)

    def test_empty_array_is_a_valid_result(self):
        decoded = decode_report_findings("[]")
        self.assertTrue(decoded.ok)
        self.assertEqual(decoded.records, ())

    def test_report_missing_field_is_rejected(self):
        items = json.loads(REPORT_JSON)
        del items[1]["unit"]
        decoded = decode_report_findings(json.dumps(items))
        self.assertFalse(decoded.ok)
        self.assertIn("unit", decoded.error)

    def test_report_status_outside_enum_is_rejected(self):
        items = json.loads(REPORT_JSON)
        items[0]["status"] = "Borderline"
        decoded = decode_report_findings(json.dumps(items))
        self.assertFalse(decoded.ok)
        with self.assertRaises(MalformedResponseError):
            decoded.unwrap()

    def test_non_string_value_is_not_coerced(self):
        items = json.loads(REPORT_JSON)
        items[0]["value"] = 11.2
        self.assertFalse(decode_report_findings(json.dumps(items)).ok)

    def test_invalid_json_and_wrong_shape_are_rejected(self):
        self.assertFalse(decode_report_findings("The report looks fine.").ok)
        self.assertFalse(decode_report_findings('{"testName": "x"}').ok)
        self.assertFalse(decode_report_findings('["x"]').ok)
        self.assertFalse(decode_report_findings("").ok)

    def test_symptom_severity_outside_enum_is_rejected(self):
        items = json.loads(SYMPTOM_JSON)
        items[0]["severity"] = "Critical"
        self.assertFalse(decode_symptom_assessments(json.dumps(items)).ok)

    def test_more_than_three_assessments_is_rejected(self):
        items = json.loads(SYMPTOM_JSON) * 2
        decoded = decode_symptom_assessments(json.dumps(items))
        self.assertFalse(decoded.ok)
        self.assertIn("at most 3", decoded.error)

    def test_interaction_warning_heuristic(self):
        self.assertFalse(has_interaction_warning("No interactions were found between these."))
        self.assertFalse(has_interaction_warning("There are NO INTERACTIONS known."))
        self.assertFalse(has_interaction_warning("   "))
        self.assertTrue(has_interaction_warning("Ibuprofen may reduce the effect of aspirin."))

    def test_schemas_declare_required_fields_and_enums(self):
        report = report_findings_schema()
        self.assertEqual(report["type"], "ARRAY")
        self.assertEqual(report["items"]["required"], list(REPORT_FIELDS))
        self.assertEqual(report["items"]["properties"]["status"]["enum"], ["Normal", "Abnormal"])

        symptoms = symptom_assessments_schema()
        self.assertEqual(symptoms["items"]["properties"]["severity"]["enum"], ["Low", "Moderate", "High"])
        self.assertIn("description", symptoms["items"]["properties"]["condition"])


class GatewayTests(SimpleTestCase):
    def setUp(self):
        self.image = from_data_uri(png_data_uri())
        self.intake = SymptomIntake(symptoms="Headache", duration="2 days", severity=6, history="None")

    @patch("health.gateway.genai")
    def test_missing_credential_fails_before_any_call(self, mock_genai):
        gateway = HealthGateway(api_key="", model_name="gemini-2.5-flash")
        operations = [
            lambda: gateway.chat_reply("hi"),
            lambda: gateway.analyze_report(self.image),
            lambda: gateway.analyze_symptoms(self.intake),
            lambda: gateway.check_interactions(["Aspirin", "Ibuprofen"]),
            lambda: gateway.health_insights({"steps": []}),
        ]
        for operation in operations:
            with self.assertRaises(ConfigurationError):
                operation()
        mock_genai.configure.assert_not_called()
        mock_genai.GenerativeModel.assert_not_called()

    @patch("health.gateway.genai")
    def test_chat_sends_persona_history_and_image_first(self, mock_genai):
        model = mock_genai.GenerativeModel.return_value
        model.generate_content.return_value = Mock(text="  Stay hydrated.  ")
        gateway = HealthGateway(api_key="key", model_name="gemini-2.5-flash")

        history = [ChatTurn("model", "Hello!"), ChatTurn("user", "I have a cough")]
        reply = gateway.chat_reply("What now?", history, self.image)

        self.assertEqual(reply, "Stay hydrated.")
        mock_genai.configure.assert_called_once_with(api_key="key")
        _, kwargs = mock_genai.GenerativeModel.call_args
        self.assertEqual(kwargs["system_instruction"], PERSONA_INSTRUCTION)
        self.assertIsNone(kwargs["generation_config"])

        contents = model.generate_content.call_args[0][0]
        self.assertEqual([c["role"] for c in contents], ["model", "user", "user"])
        current = contents[-1]["parts"]
        self.assertEqual(current[0]["inline_data"]["mime_type"], "image/png")
        self.assertIsInstance(current[0]["inline_data"]["data"], bytes)
        self.assertEqual(current[1], {"text": "What now?"})

    @patch("health.gateway.genai")
    def test_report_declares_structured_output(self, mock_genai):
        model = mock_genai.GenerativeModel.return_value
        model.generate_content.return_value = Mock(text=REPORT_JSON)
        gateway = HealthGateway(api_key="key", model_name="gemini-2.5-flash")

        self.assertEqual(gateway.analyze_report(self.image), REPORT_JSON)
        mock_genai.GenerationConfig.assert_called_once_with(
            response_mime_type="application/json",
            response_schema=report_findings_schema(),
        )

    @patch("health.gateway.genai")
    def test_symptoms_prompt_carries_all_answers(self, mock_genai):
        model = mock_genai.GenerativeModel.return_value
        model.generate_content.return_value = Mock(text=SYMPTOM_JSON)
        gateway = HealthGateway(api_key="key", model_name="gemini-2.5-flash")

        gateway.analyze_symptoms(self.intake)
        prompt = model.generate_content.call_args[0][0]
        for expected in ("Headache", "2 days", "Severity (1-10): 6", "Medical History: None", "3 potential"):
            self.assertIn(expected, prompt)
        self.assertEqual(
            mock_genai.GenerationConfig.call_args.kwargs["response_schema"],
            symptom_assessments_schema(),
        )

    @patch("health.gateway.genai")
    def test_interaction_prompt_collapses_duplicates(self, mock_genai):
        model = mock_genai.GenerativeModel.return_value
        model.generate_content.return_value = Mock(text="Avoid combining them.")
        gateway = HealthGateway(api_key="key", model_name="gemini-2.5-flash")

        gateway.check_interactions(["Aspirin", "Ibuprofen", "Aspirin"])
        prompt = model.generate_content.call_args[0][0]
        self.assertIn("Aspirin, Ibuprofen.", prompt)

    @patch("health.gateway.genai")
    def test_empty_responses_fall_back_per_operation(self, mock_genai):
        model = mock_genai.GenerativeModel.return_value
        model.generate_content.return_value = Mock(text="")
        gateway = HealthGateway(api_key="key", model_name="gemini-2.5-flash")

        self.assertEqual(gateway.chat_reply("hi"), "")
        self.assertEqual(gateway.analyze_report(self.image), "[]")
        self.assertEqual(gateway.analyze_symptoms(self.intake), "[]")
        self.assertEqual(gateway.check_interactions(["A", "B"]), "No interactions found.")
        self.assertEqual(gateway.health_insights({"steps": []}), "Keep up the good work!")

    @patch("health.gateway.genai")
    def test_blocked_response_reads_as_empty(self, mock_genai):
        class BlockedResponse:
            @property
            def text(self):
                raise ValueError("no parts")

        mock_genai.GenerativeModel.return_value.generate_content.return_value = BlockedResponse()
        gateway = HealthGateway(api_key="key", model_name="gemini-2.5-flash")
        self.assertEqual(gateway.health_insights({"sleepAvg": "7h"}), "Keep up the good work!")

    @patch("health.gateway.genai")
    def test_backend_failure_becomes_network_error(self, mock_genai):
        mock_genai.GenerativeModel.return_value.generate_content.side_effect = ConnectionError("reset")
        gateway = HealthGateway(api_key="key", model_name="gemini-2.5-flash")
        with self.assertRaises(NetworkError) as ctx:
            gateway.analyze_report(self.image)
        self.assertIsInstance(ctx.exception.__cause__, ConnectionError)

    @override_settings(GEMINI_API_KEY="", GEMINI_MODEL="gemini-2.0-flash")
    def test_from_settings_reads_configuration(self):
        gateway = HealthGateway.from_settings()
        self.assertFalse(gateway.is_configured)
        self.assertEqual(gateway.model_name, "gemini-2.0-flash")

    def test_chat_turn_rejects_unknown_role(self):
        with self.assertRaises(ValueError):
            ChatTurn("assistant", "hi")


class ServiceFallbackTests(SimpleTestCase):
    def setUp(self):
        self.intake = SymptomIntake(symptoms="Fever", duration="2 days", severity=6, history="")

    @patch("health.gateway.get_gateway")
    def test_symptom_network_failure_shows_generic_alert(self, mock_get_gateway):
        mock_get_gateway.return_value = fake_gateway(analyze_symptoms=NetworkError("timeout"))
        outcome = services.analyze_symptoms(self.intake)
        self.assertEqual(outcome.error, "network")
        self.assertEqual(outcome.http_status, 503)
        self.assertEqual(outcome.message, services.SYMPTOMS_FAILED_MESSAGE)
        self.assertEqual(outcome.data, {"assessments": []})
        self.assertFalse(outcome.ai_disabled)

    @patch("health.gateway.get_gateway")
    def test_symptom_malformed_output_is_reported(self, mock_get_gateway):
        items = json.loads(SYMPTOM_JSON)
        items[0]["severity"] = "Critical"
        mock_get_gateway.return_value = fake_gateway(analyze_symptoms=json.dumps(items))
        with self.assertLogs("health.services", level="WARNING") as logs:
            outcome = services.analyze_symptoms(self.intake)
        self.assertEqual(outcome.error, "malformed")
        self.assertEqual(outcome.http_status, 502)
        self.assertEqual(outcome.message, services.SYMPTOMS_FAILED_MESSAGE)
        self.assertIn("Critical", logs.output[0])

    @patch("health.gateway.get_gateway")
    def test_single_medication_name_skips_interaction_check(self, mock_get_gateway):
        outcome = services.check_interactions(["Aspirin", "Aspirin", " Aspirin "])
        self.assertFalse(outcome.data["checked"])
        mock_get_gateway.assert_not_called()

    @patch("health.gateway.get_gateway")
    def test_no_interactions_phrase_suppresses_banner(self, mock_get_gateway):
        mock_get_gateway.return_value = fake_gateway(check_interactions="No interactions found.")
        outcome = services.check_interactions(["Aspirin", "Ibuprofen"])
        self.assertTrue(outcome.data["checked"])
        self.assertIsNone(outcome.data["warning"])

    @patch("health.gateway.get_gateway")
    def test_other_interaction_text_raises_banner(self, mock_get_gateway):
        mock_get_gateway.return_value = fake_gateway(check_interactions="Taking both raises bleeding risk.")
        outcome = services.check_interactions(["Aspirin", "Ibuprofen"])
        self.assertEqual(outcome.data["warning"], "Taking both raises bleeding risk.")

    @patch("health.gateway.get_gateway")
    def test_malformed_report_is_distinct_from_network_failure(self, mock_get_gateway):
        mock_get_gateway.return_value = fake_gateway(analyze_report="not json")
        malformed = services.analyze_report(Mock())
        self.assertEqual(malformed.error, "malformed")
        self.assertEqual(malformed.http_status, 502)
        self.assertEqual(malformed.message, services.REPORT_FAILED_MESSAGE)

        mock_get_gateway.return_value = fake_gateway(analyze_report=NetworkError("down"))
        network = services.analyze_report(Mock())
        self.assertEqual(network.error, "network")
        self.assertEqual(network.http_status, 503)

    @patch("health.gateway.get_gateway")
    def test_chat_distinguishes_empty_from_failure(self, mock_get_gateway):
        mock_get_gateway.return_value = fake_gateway(chat_reply="")
        empty = services.chat("hi")
        self.assertTrue(empty.ok)
        self.assertEqual(empty.data["reply"], services.CHAT_EMPTY_MESSAGE)

        mock_get_gateway.return_value = fake_gateway(chat_reply=NetworkError("timeout"))
        failed = services.chat("hi")
        self.assertFalse(failed.ok)
        self.assertEqual(failed.data["reply"], services.CHAT_CONNECTION_MESSAGE)

    @override_settings(GEMINI_API_KEY="")
    def test_missing_key_disables_ai(self):
        outcome = services.weekly_insights({"sleepAvg": "7h"})
        self.assertTrue(outcome.ai_disabled)
        self.assertEqual(outcome.data["summary"], services.INSIGHTS_FAILED_MESSAGE)
        self.assertEqual(outcome.message, services.NOT_CONFIGURED_MESSAGE)
        self.assertFalse(services.ai_configured())

    @patch("health.gateway.get_gateway")
    def test_payload_envelope_echoes_ticket(self, mock_get_gateway):
        mock_get_gateway.return_value = fake_gateway(health_insights="Great week!")
        payload = services.weekly_insights({"sleepAvg": "7h"}).to_payload(ticket=4)
        self.assertEqual(payload, {"status": "success", "data": {"summary": "Great week!"}, "ticket": 4})


class ImageInputTests(SimpleTestCase):
    def test_data_uri_prefix_is_stripped(self):
        image = from_data_uri("data:image/jpeg;base64,QUJD")
        self.assertEqual(image, InlineImage(mime_type="image/jpeg", data="QUJD"))
        self.assertEqual(image.raw_bytes(), b"ABC")

    def test_plain_base64_is_not_a_data_uri(self):
        with self.assertRaises(ImageInputError):
            from_data_uri("QUJD")

    def test_guardrails_accept_readable_png(self):
        self.assertTrue(run_image_guardrails(from_data_uri(png_data_uri()))["safe"])

    def test_guardrails_reject_unsupported_type_and_garbage(self):
        result = run_image_guardrails(InlineImage(mime_type="image/gif", data="QUJD"))
        self.assertFalse(result["safe"])
        self.assertIn("JPG", result["reason"])

        garbage = InlineImage(mime_type="image/png", data=base64.b64encode(b"not an image").decode())
        self.assertFalse(run_image_guardrails(garbage)["safe"])

    @override_settings(AI_MAX_IMAGE_BYTES=10)
    def test_guardrails_reject_oversized_payload(self):
        result = run_image_guardrails(from_data_uri(png_data_uri()))
        self.assertFalse(result["safe"])
        self.assertIn("too large", result["reason"])


class MedicationScheduleTests(SimpleTestCase):
    def test_one_record_per_selected_slot_with_defaults(self):
        meds = add_medications([], "Paracetamol", ["Night", "Morning"])
        self.assertEqual([m.time for m in meds], ["Morning", "Night"])
        self.assertTrue(all(m.dosage == "1 Pill" and m.duration == "Ongoing" for m in meds))
        self.assertEqual(len({m.id for m in meds}), 2)

    def test_name_and_slot_are_required(self):
        with self.assertRaises(ValueError):
            add_medications([], "", ["Morning"])
        with self.assertRaises(ValueError):
            add_medications([], "Aspirin", [])

    def test_toggle_remove_and_grouping(self):
        meds = add_medications([], "Aspirin", ["Morning", "Evening"], dosage="75mg")
        meds = add_medications(meds, "Ibuprofen", ["Morning"])
        first = meds[0].id

        toggle_taken(meds, first)
        self.assertTrue(meds[0].taken)
        self.assertEqual(unique_names(meds), ["Aspirin", "Ibuprofen"])

        groups = group_by_slot(meds)
        self.assertEqual([g["time"] for g in groups], ["Morning", "Evening"])
        self.assertEqual(len(groups[0]["medications"]), 2)

        self.assertEqual(len(remove(meds, first)), 2)

    def test_from_dict_rejects_unknown_slot(self):
        with self.assertRaises(ValueError):
            Medication.from_dict({"name": "Aspirin", "time": "Noon"})


class SymptomWizardTests(SimpleTestCase):
    def test_steps_advance_and_submit_on_last(self):
        wizard = SymptomWizard.from_dict({"step": 1, "symptoms": "Cough"})
        self.assertFalse(wizard.next())
        self.assertEqual(wizard.current_field, "duration")
        wizard.step = 4
        self.assertTrue(wizard.next())
        self.assertEqual(wizard.step, 4)

    def test_first_step_needs_symptoms(self):
        wizard = SymptomWizard.from_dict({"step": 1, "symptoms": "   "})
        with self.assertRaises(ValueError):
            wizard.next()
        self.assertEqual(wizard.step, 1)

    def test_last_step_does_not_submit_without_symptoms(self):
        wizard = SymptomWizard.from_dict({"step": 4, "symptoms": "", "duration": "2 days"})
        with self.assertRaises(ValueError):
            wizard.next()
        self.assertEqual(wizard.step, 4)

    def test_back_stops_at_first_step(self):
        wizard = SymptomWizard.from_dict({"step": 1})
        wizard.back()
        self.assertEqual(wizard.step, 1)

    def test_severity_defaults_and_clamps(self):
        self.assertEqual(SymptomWizard.from_dict({}).answers["severity"], 5)
        self.assertEqual(SymptomWizard.from_dict({"severity": 42}).answers["severity"], 10)
        self.assertEqual(SymptomWizard.from_dict({"severity": "abc"}).answers["severity"], 5)


class DictationTests(SimpleTestCase):
    def test_transcript_is_appended_with_space(self):
        self.assertEqual(append_transcript("I feel", "dizzy"), "I feel dizzy")
        self.assertEqual(append_transcript("draft", ""), "draft")

    def test_unsupported_capability_reports_message(self):
        config = DictationCapability(supported=False).session_config()
        self.assertFalse(config["supported"])
        self.assertIn("not supported", config["message"])

    def test_supported_session_is_single_shot(self):
        config = DictationCapability(supported=True).session_config()
        self.assertFalse(config["continuous"])
        self.assertFalse(config["interimResults"])
        self.assertEqual(config["lang"], "en-US")


class HealthViewTests(TestCase):
    def setUp(self):
        self.client = Client()
        self.client.post(
            reverse("signin"),
            data=json.dumps({"email": "ana@example.com", "password": "x"}),
            content_type="application/json",
        )

    def _post(self, name, payload):
        return self.client.post(reverse(name), data=json.dumps(payload), content_type="application/json")

    def test_views_require_profile(self):
        anonymous = Client()
        self.assertEqual(anonymous.get(reverse("emergency")).status_code, 401)

    @override_settings(EMERGENCY_NUMBER="112")
    def test_emergency_guides_use_configured_number(self):
        response = self.client.get(reverse("emergency"))
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data["number"], "112")
        self.assertEqual(len(data["guides"]), 4)
        self.assertIn("Call 112", data["guides"][0]["steps"])

        detail = self.client.get(reverse("emergency-guide", args=["burns"]))
        self.assertEqual(detail.json()["steps"][1], "Do NOT use ice")
        self.assertEqual(self.client.get(reverse("emergency-guide", args=["nope"])).status_code, 404)

    @patch("health.gateway.get_gateway")
    def test_adding_first_medication_skips_interaction_check(self, mock_get_gateway):
        response = self._post("medication-add", {"name": "Aspirin", "times": ["Morning", "Night"]})
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(len(data["medications"]), 2)
        self.assertFalse(data["interactions"]["data"]["checked"])
        mock_get_gateway.assert_not_called()

    @patch("health.gateway.get_gateway")
    def test_adding_second_medication_surfaces_warning(self, mock_get_gateway):
        mock_get_gateway.return_value = fake_gateway(check_interactions="Bleeding risk when combined.")
        current = add_medications([], "Aspirin", ["Morning"])
        response = self._post(
            "medication-add",
            {
                "medications": [m.to_dict() for m in current],
                "name": "Ibuprofen",
                "dosage": "200mg",
                "times": ["Afternoon"],
            },
        )
        data = response.json()
        self.assertEqual(data["interactions"]["data"]["warning"], "Bleeding risk when combined.")
        self.assertEqual([g["time"] for g in data["schedule"]], ["Morning", "Afternoon"])

    def test_add_medication_requires_name_and_time(self):
        response = self._post("medication-add", {"name": "Aspirin", "times": []})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "Please enter a name and select at least one time.")

    def test_toggle_and_delete(self):
        current = [m.to_dict() for m in add_medications([], "Aspirin", ["Morning", "Night"])]
        toggled = self._post("medication-toggle", {"medications": current, "id": current[0]["id"]}).json()
        self.assertTrue(toggled["medications"][0]["taken"])

        deleted = self._post("medication-delete", {"medications": current, "id": current[0]["id"]}).json()
        self.assertEqual(len(deleted["medications"]), 1)

    def test_symptom_wizard_moves_between_steps(self):
        response = self._post("symptom-step", {"action": "next", "step": 2, "symptoms": "Cough"})
        self.assertEqual(response.json()["wizard"]["step"], 3)
        self.assertFalse(response.json()["submitted"])

        response = self._post("symptom-step", {"action": "back", "step": 3})
        self.assertEqual(response.json()["wizard"]["step"], 2)

    @patch("health.gateway.get_gateway")
    def test_symptom_wizard_submits_on_last_step(self, mock_get_gateway):
        mock_get_gateway.return_value = fake_gateway(analyze_symptoms=f"```json\n{SYMPTOM_JSON}\n```")
        response = self._post(
            "symptom-step",
            {"action": "next", "step": 4, "symptoms": "Fever", "duration": "3 days", "severity": 7, "history": ""},
        )
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertTrue(data["submitted"])
        self.assertEqual(len(data["result"]["data"]["assessments"]), 2)
        intake = mock_get_gateway.return_value.analyze_symptoms.call_args[0][0]
        self.assertEqual(intake.severity, 7)

    @patch("health.gateway.get_gateway")
    def test_symptom_wizard_rejects_blank_symptoms(self, mock_get_gateway):
        response = self._post("symptom-step", {"action": "next", "step": 1, "symptoms": ""})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "Please describe your symptoms.")
        self.assertEqual(response.json()["wizard"]["step"], 1)

        response = self._post("symptom-step", {"action": "next", "step": 4, "symptoms": ""})
        self.assertEqual(response.status_code, 400)
        self.assertFalse(response.json()["submitted"])
        mock_get_gateway.assert_not_called()

    @patch("health.gateway.get_gateway")
    def test_symptom_wizard_reports_network_failure(self, mock_get_gateway):
        mock_get_gateway.return_value = fake_gateway(analyze_symptoms=NetworkError("timeout"))
        response = self._post("symptom-step", {"action": "next", "step": 4, "symptoms": "Fever"})
        self.assertEqual(response.status_code, 503)
        result = response.json()["result"]
        self.assertEqual(result["error"], "network")
        self.assertEqual(result["message"], "Something went wrong. Please try again.")


class CheckGeminiCommandTests(SimpleTestCase):
    @override_settings(GEMINI_API_KEY="")
    def test_missing_key_fails(self):
        with self.assertRaises(CommandError):
            call_command("check_gemini", stdout=io.StringIO())

    @override_settings(GEMINI_API_KEY="key", GEMINI_MODEL="gemini-9-unknown")
    @patch("health.management.commands.check_gemini.genai")
    @patch("health.gateway.genai")
    def test_falls_back_to_available_model(self, mock_gateway_genai, mock_command_genai):
        flash = Mock(supported_generation_methods=["generateContent"])
        flash.name = "models/gemini-2.0-flash"
        mock_command_genai.list_models.return_value = [flash]
        mock_gateway_genai.GenerativeModel.return_value.generate_content.return_value = Mock(text="OK")

        out = io.StringIO()
        call_command("check_gemini", stdout=out)

        self.assertIn("working with gemini-2.0-flash", out.getvalue())
        self.assertEqual(mock_gateway_genai.GenerativeModel.call_args[0][0], "gemini-2.0-flash")

    @override_settings(GEMINI_API_KEY="key", GEMINI_MODEL="gemini-9-unknown")
    @patch("health.management.commands.check_gemini.genai")
    @patch("health.gateway.genai")
    def test_prefers_any_flash_model_over_other_models(self, mock_gateway_genai, mock_command_genai):
        models = []
        for name in ("models/aqa-pro", "models/gemini-3.0-flash", "models/gemini-3.0-pro"):
            model = Mock(supported_generation_methods=["generateContent"])
            model.name = name
            models.append(model)
        mock_command_genai.list_models.return_value = models
        mock_gateway_genai.GenerativeModel.return_value.generate_content.return_value = Mock(text="OK")

        out = io.StringIO()
        call_command("check_gemini", stdout=out)

        self.assertIn("using gemini-3.0-flash", out.getvalue())
        self.assertEqual(mock_gateway_genai.GenerativeModel.call_args[0][0], "gemini-3.0-flash")

    @override_settings(GEMINI_API_KEY="key")
    @patch("health.management.commands.check_gemini.genai")
    @patch("health.gateway.genai")
    def test_backend_failure_is_a_command_error(self, mock_gateway_genai, mock_command_genai):
        mock_command_genai.list_models.side_effect = RuntimeError("offline")
        mock_gateway_genai.GenerativeModel.return_value.generate_content.side_effect = RuntimeError("offline")
        with self.assertRaises(CommandError):
            call_command("check_gemini", stdout=io.StringIO())
