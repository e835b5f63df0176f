import json
from unittest.mock import patch

from django.conf import settings
from django.test import Client, SimpleTestCase, TestCase, override_settings
from django.urls import reverse

from .context import Profile
from .wellness import (
    WaterTracker,
    format_duration,
    greeting,
    manual_sleep,
    mood_label,
    parse_clock,
    sleep_duration,
    steps_progress,
)


class WellnessTests(SimpleTestCase):
    def test_sleep_across_midnight(self):
        self.assertEqual(format_duration(sleep_duration("22:30", "06:30")), "8h 0m")
        self.assertEqual(format_duration(sleep_duration("23:00", "07:15")), "8h 15m")

    def test_same_bed_and_wake_time_is_a_full_day(self):
        self.assertEqual(sleep_duration("07:00", "07:00"), 24 * 60)

    def test_manual_hours_round_to_minutes(self):
        self.assertEqual(format_duration(manual_sleep(7.5)), "7h 30m")
        self.assertEqual(manual_sleep(7.999), 480)
        self.assertEqual(format_duration(manual_sleep(7.999)), "8h 0m")
        with self.assertRaises(ValueError):
            manual_sleep(-1)
        with self.assertRaises(ValueError):
            manual_sleep(float("nan"))

    def test_parse_clock_rejects_bad_input(self):
        self.assertEqual(parse_clock("06:05"), 365)
        for value in ("6", "24:00", "12:60", "ab:cd"):
            with self.assertRaises(ValueError):
                parse_clock(value)

    def test_water_is_capped_at_twice_the_goal(self):
        tracker = WaterTracker(current=4900, goal=2500, increment=250)
        self.assertEqual(tracker.add(), 5000)
        self.assertEqual(tracker.add(), 5000)
        self.assertEqual(tracker.progress_percent, 100.0)
        self.assertEqual(tracker.reset(), 0)

    def test_water_goal_must_be_positive(self):
        tracker = WaterTracker()
        for bad in (0, -500, "abc", float("inf")):
            with self.assertRaises(ValueError):
                tracker.set_goal(bad)
        self.assertEqual(tracker.set_goal(3000), 3000)

    def test_water_liters_formatting(self):
        data = WaterTracker(current=1250, goal=2500).to_dict()
        self.assertEqual(data["goal_liters"], "2.5L")
        self.assertEqual(data["progress_percent"], 50.0)

    def test_greeting_mood_and_steps(self):
        self.assertEqual(greeting(9), "Good Morning")
        self.assertEqual(greeting(12), "Good Afternoon")
        self.assertEqual(greeting(20), "Good Evening")
        self.assertEqual(mood_label(71), "Great!")
        self.assertEqual(mood_label(70), "Okay")
        self.assertEqual(mood_label(40), "Low")
        self.assertEqual(steps_progress(12000, 10000), 100.0)

    def test_profile_initial_and_first_name(self):
        profile = Profile(name="ana maria", email="ana@example.com")
        self.assertEqual(profile.initial, "A")
        self.assertEqual(profile.first_name, "ana")


class ProfileSessionTests(TestCase):
    def setUp(self):
        self.client = Client()

    def _post(self, name, payload):
        return self.client.post(reverse(name), data=json.dumps(payload), content_type="application/json")

    def test_session_starts_signed_out(self):
        response = self.client.get(reverse("session"))
        self.assertEqual(response.json(), {"authenticated": False, "profile": None})

    def test_login_derives_name_from_email(self):
        response = self._post("signin", {"mode": "login", "email": "sam.lee@example.com", "password": "pw"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["profile"], {"name": "sam.lee", "email": "sam.lee@example.com"})

        session = self.client.get(reverse("session")).json()
        self.assertTrue(session["authenticated"])
        self.assertEqual(session["profile"]["email"], "sam.lee@example.com")

    def test_signup_requires_name(self):
        response = self._post("signin", {"mode": "signup", "email": "a@example.com", "password": "pw"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "Please enter your name")

    def test_missing_fields_are_rejected(self):
        response = self._post("signin", {"mode": "login", "email": "a@example.com"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "Please fill in all fields")

    def test_invalid_json_is_rejected(self):
        response = self.client.post(reverse("signin"), data="{not json", content_type="application/json")
        self.assertEqual(response.status_code, 400)

    def test_logout_clears_profile(self):
        self._post("signin", {"mode": "signup", "name": "Ana", "email": "ana@example.com", "password": "pw"})
        self._post("logout", {})
        self.assertFalse(self.client.get(reverse("session")).json()["authenticated"])
        self.assertEqual(self.client.get(reverse("dashboard")).status_code, 401)

    def test_unreadable_profile_blob_is_signed_out(self):
        session = self.client.session
        session["lifepulse_profile"] = "{broken"
        session.save()
        self.client.cookies[settings.SESSION_COOKIE_NAME] = session.session_key
        self.assertFalse(self.client.get(reverse("session")).json()["authenticated"])


@override_settings(GEMINI_API_KEY="")
class DashboardTests(TestCase):
    def setUp(self):
        self.client = Client()
        self._post("signin", {"mode": "signup", "name": "Ana Maria", "email": "ana@example.com", "password": "pw"})

    def _post(self, name, payload):
        return self.client.post(reverse(name), data=json.dumps(payload), content_type="application/json")

    def test_dashboard_requires_profile(self):
        self.assertEqual(Client().get(reverse("dashboard")).status_code, 401)

    @patch("core.views.timezone.localtime")
    def test_dashboard_defaults(self, mock_localtime):
        mock_localtime.return_value.hour = 8
        response = self.client.get(reverse("dashboard"), {"mood": 80, "steps": 5000})
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data["greeting"], "Good Morning, Ana")
        self.assertEqual(data["initial"], "A")
        self.assertEqual(data["sleep"]["duration"], "8h 0m")
        self.assertEqual(data["mood"]["label"], "Great!")
        self.assertEqual(data["steps"]["progress_percent"], 50.0)
        self.assertEqual(data["water"]["current"], 0)
        self.assertFalse(data["ai_enabled"])

    def test_auto_and_manual_sleep(self):
        auto = self._post("dashboard-sleep", {"mode": "auto", "bedtime": "23:00", "waketime": "07:15"})
        self.assertEqual(auto.json()["duration"], "8h 15m")

        manual = self._post("dashboard-sleep", {"mode": "manual", "hours": 7.5})
        self.assertEqual(manual.json(), {"mode": "manual", "minutes": 450, "duration": "7h 30m"})

    def test_sleep_rejects_bad_clock(self):
        response = self._post("dashboard-sleep", {"mode": "auto", "bedtime": "25:00", "waketime": "07:00"})
        self.assertEqual(response.status_code, 400)
        self.assertIn("bedtime", response.json()["fields"])

    @override_settings(WATER_GOAL_ML=2500, WATER_INCREMENT_ML=250)
    def test_water_add_is_capped_and_reset_clears(self):
        added = self._post("dashboard-water", {"action": "add", "current": 4900, "goal": 2500})
        self.assertEqual(added.json()["current"], 5000)

        reset = self._post("dashboard-water", {"action": "reset", "current": 1500, "goal": 2500})
        self.assertEqual(reset.json()["current"], 0)

    def test_water_goal_must_be_positive(self):
        response = self._post("dashboard-water", {"action": "goal", "current": 0, "goal": 2500, "new_goal": -5})
        self.assertEqual(response.status_code, 400)

        response = self._post("dashboard-water", {"action": "goal", "current": 0, "goal": 2500, "new_goal": 3000})
        self.assertEqual(response.json()["goal"], 3000)

    def test_capabilities_report_disabled_ai(self):
        data = Client().get(reverse("capabilities")).json()
        self.assertFalse(data["ai_enabled"])
        self.assertIn("not configured", data["ai_message"])
        self.assertEqual(data["dictation_unsupported_message"], "Voice input is not supported in this browser.")
