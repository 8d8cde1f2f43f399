"""Constants and configuration values."""

# Fixed column names of the dialogue table
COL_NR = 'NR'
COL_FILENR = 'FILENR'
COL_ID = 'ID'
COL_SYMBOL = 'SYMBOL'
COL_USE = 'USE'
COL_TRACE = 'TRACE'

# Key of the array in request and response payloads
PAYLOAD_KEY = 'd'

# Seconds to wait between API calls to prevent rate limiting
RATE_LIMIT_DELAY = 1.0

# Per-model thinking budget caps (prefix match, exact match)
THINKING_TOKEN_LIMITS = {
    'gemini-2.5-flash': (24_576, True),
    'gemini-2.5-pro': (32_768, False),
}

# Debug log truncation
PROMPT_DISPLAY_LENGTH = 2000
RESPONSE_DISPLAY_LENGTH = 500

GEMINI_API_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
GEMINI_TIMEOUT_SECONDS = 60 * 30

SAFETY_CATEGORIES = [
    'HARM_CATEGORY_HARASSMENT',
    'HARM_CATEGORY_HATE_SPEECH',
    'HARM_CATEGORY_SEXUALLY_EXPLICIT',
    'HARM_CATEGORY_DANGEROUS_CONTENT',
    'HARM_CATEGORY_CIVIC_INTEGRITY',
]
