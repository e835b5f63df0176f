from django import forms

from .medications import TIME_SLOTS


class MedicationForm(forms.Form):
    name = forms.CharField(max_length=120, required=False)
    dosage = forms.CharField(max_length=60, required=False)
    duration = forms.CharField(max_length=60, required=False)
    times = forms.MultipleChoiceField(
        choices=[(slot, slot) for slot in TIME_SLOTS],
        required=False,
    )

    def clean(self):
        cleaned_data = super().clean()
        if self.errors:
            return cleaned_data
        if not (cleaned_data.get("name") or "").strip() or not cleaned_data.get("times"):
            raise forms.ValidationError("Please enter a name and select at least one time.")
        return cleaned_data


class ReportUploadForm(forms.Form):
    report_file = forms.FileField(required=False)
    image = forms.CharField(required=False, strip=True)

    def clean(self):
        cleaned_data = super().clean()
        if not cleaned_data.get("report_file") and not cleaned_data.get("image"):
            raise forms.ValidationError("Upload a report photo.")
        return cleaned_data
