from django import forms

from .context import Profile
from .wellness import parse_clock


class SignInForm(forms.Form):
    MODE_CHOICES = [
        ("login", "Log In"),
        ("signup", "Sign Up"),
    ]

    mode = forms.ChoiceField(choices=MODE_CHOICES, required=False)
    name = forms.CharField(max_length=150, required=False)
    email = forms.EmailField(required=False)
    # Accepted and discarded: sign-in is a local identity stub.
    password = forms.CharField(required=False, strip=False)

    def clean(self):
        cleaned_data = super().clean()
        mode = cleaned_data.get("mode") or "login"
        cleaned_data["mode"] = mode
        if self.errors:
            return cleaned_data
        if not cleaned_data.get("email") or not cleaned_data.get("password"):
            raise forms.ValidationError("Please fill in all fields")
        if mode == "signup" and not (cleaned_data.get("name") or "").strip():
            raise forms.ValidationError("Please enter your name")
        return cleaned_data

    def profile(self) -> Profile:
        email = self.cleaned_data["email"]
        if self.cleaned_data["mode"] == "signup":
            name = self.cleaned_data["name"].strip()
        else:
            name = email.split("@")[0] or "User"
        return Profile(name=name, email=email)


class SleepForm(forms.Form):
    MODE_CHOICES = [
        ("auto", "Auto"),
        ("manual", "Manual"),
    ]

    mode = forms.ChoiceField(choices=MODE_CHOICES, required=False)
    bedtime = forms.CharField(required=False)
    waketime = forms.CharField(required=False)
    hours = forms.FloatField(required=False, min_value=0, max_value=24)

    def clean(self):
        cleaned_data = super().clean()
        mode = cleaned_data.get("mode") or "auto"
        cleaned_data["mode"] = mode
        if self.errors:
            return cleaned_data
        if mode == "manual":
            if cleaned_data.get("hours") is None:
                raise forms.ValidationError("Enter the total hours slept.")
            return cleaned_data
        for field in ("bedtime", "waketime"):
            try:
                parse_clock(cleaned_data.get(field) or "")
            except ValueError as exc:
                self.add_error(field, str(exc))
        return cleaned_data


class WaterForm(forms.Form):
    ACTION_CHOICES = [
        ("add", "Add"),
        ("reset", "Reset"),
        ("goal", "Set goal"),
    ]

    action = forms.ChoiceField(choices=ACTION_CHOICES)
    current = forms.IntegerField(required=False, min_value=0)
    goal = forms.IntegerField(required=False, min_value=1)
    new_goal = forms.FloatField(required=False)

    def clean(self):
        cleaned_data = super().clean()
        if cleaned_data.get("action") == "goal" and cleaned_data.get("new_goal") is None:
            self.add_error("new_goal", "Enter a water goal in millilitres.")
        return cleaned_data
