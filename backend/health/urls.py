from django.urls import path

from .views import (
    add_medication_view,
    delete_medication_view,
    emergency_guide_view,
    emergency_view,
    symptom_step_view,
    toggle_medication_view,
)

urlpatterns = [
    path("emergency/", emergency_view, name="emergency"),
    path("emergency/<slug:slug>/", emergency_guide_view, name="emergency-guide"),
    path("medications/add/", add_medication_view, name="medication-add"),
    path("medications/toggle/", toggle_medication_view, name="medication-toggle"),
    path("medications/delete/", delete_medication_view, name="medication-delete"),
    path("symptoms/step/", symptom_step_view, name="symptom-step"),
]
