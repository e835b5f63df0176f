PERSONA_INSTRUCTION = (
    "You are a helpful, empathetic, and professional health assistant named 'LifePulse'. "
    "Provide clear, concise medical information but always include a disclaimer that you "
    "are an AI and not a doctor, and that your answers are not a substitute for a doctor. "
    "Use Markdown for formatting."
)

REPORT_PROMPT = (
    "Analyze this medical report image. Extract the key test results. "
    "Return ONLY a JSON array where each object has: 'testName' (string), 'value' (string), "
    "'unit' (string), 'status' (string: 'Normal' or 'Abnormal'), and 'explanation' "
    "(string, simplified for a layman). Do not wrap in markdown code blocks."
)

SYMPTOM_PROMPT = """
Act as a medical symptom checker. Analyze the following patient data:
1. Main Symptoms: {symptoms}
2. Duration: {duration}
3. Severity (1-10): {severity}
4. Medical History: {history}

Based on this, provide a list of {count} potential conditions/causes.
Return ONLY JSON.
"""

INTERACTION_PROMPT = (
    "I am taking the following medications: {names}. "
    "Are there any known interactions between them? "
    "Please summarize briefly and highlight any warnings."
)

INSIGHTS_PROMPT = (
    "Analyze these weekly health metrics: {metrics}. "
    "Provide a short, encouraging summary of improvements, 1 potential risk, "
    "and 1 actionable lifestyle suggestion. Keep it under {word_limit} words."
)
