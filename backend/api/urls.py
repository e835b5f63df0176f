from django.urls import path

from .views import (
    ChatView,
    DictationView,
    InsightsView,
    InteractionCheckView,
    ReportAnalyzeView,
    SymptomAnalyzeView,
)

urlpatterns = [
    path("chat/", ChatView.as_view(), name="chat"),
    path("chat/dictation/", DictationView.as_view(), name="chat-dictation"),
    path("reports/analyze/", ReportAnalyzeView.as_view(), name="report-analyze"),
    path("symptoms/analyze/", SymptomAnalyzeView.as_view(), name="symptom-analyze"),
    path("medications/interactions/", InteractionCheckView.as_view(), name="medication-interactions"),
    path("insights/", InsightsView.as_view(), name="insights"),
]
