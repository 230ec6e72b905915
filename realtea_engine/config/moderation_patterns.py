"""Pattern sets for the content moderation gate.

Checks run in order and stop at the first match:
1. Hate speech (severity high)
2. Profanity density (more than PROFANITY_MAX_DISTINCT distinct matches)
3. Link spam (more than LINK_SPAM_MAX_URLS URLs)
4. Repeated-token spam (a word longer than REPEAT_MIN_WORD_LENGTH chars
   repeated more than REPEAT_MAX_OCCURRENCES times)
5. Extreme political bias (severity medium)
"""

HATE_SPEECH_PATTERNS = [
    r"\b(?:hate|kill|death\s+to)\s+(?:jews|muslims|christians|blacks|whites|immigrants)\b",
    r"\b(?:n[i!1]gg(?:a|er)s?|f[a@]gg?[o0]ts?|ch[i!1]nks?|sp[i!1]cs?|k[i!1]kes?)\b",
    r"\b(?:exterminate|gas)\s+(?:the\s+)?(?:jews|muslims|christians|blacks|whites|immigrants)\b",
]

PROFANITY_PATTERN = (
    r"\b(?:f[u\*]ck(?:ing|ed|er)?|sh[i!\*]t(?:ty)?|b[i!\*]tch(?:es)?|"
    r"[a@]ssh[o0]les?|d[a@]mn(?:ed)?|h[e3]ll|bastards?|crap|piss(?:ed)?|"
    r"d[i!]cks?|cunts?|wh[o0]res?)\b"
)
PROFANITY_MAX_DISTINCT = 3

URL_PATTERN = r"https?://[^\s]+"
LINK_SPAM_MAX_URLS = 5

REPEAT_MIN_WORD_LENGTH = 3
REPEAT_MAX_OCCURRENCES = 10

EXTREME_BIAS_PATTERNS = [
    r"\b(?:fake\s+news|deep\s+state\s+conspiracy|sheeple|wake\s+up\s+america)\b",
    r"\b(?:destroy|eliminate|wipe\s+out)\s+(?:the\s+)?(?:liberals|conservatives|democrats|republicans)\b",
]
