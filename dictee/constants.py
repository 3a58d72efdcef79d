"""All magic numbers and configuration constants."""

DEFAULT_TITLE = "Sans titre"                 # placeholder title for untitled dictations
DEFAULT_LANGUAGE = "fr"                      # document language when none is given
DEFAULT_SPEECH_LANGUAGE = "fr-FR"            # tag handed to the speech host when a document has none
LEGACY_MAX_SENTENCES = 20                    # legacy locators carried d[1]..d[20] only
RATE_NORMAL = 0.65                           # "Normal" playback preset (1.0 = host default speed)
RATE_MEDIUM = 0.45                           # "Moyen" preset
RATE_SLOW = 0.25                             # "Lent" preset
RATE_PRESETS = {"normal": RATE_NORMAL, "medium": RATE_MEDIUM, "slow": RATE_SLOW}
RATE_MIN = 0.1                               # lowest accepted playback rate
RATE_MAX = 2.0                               # highest accepted playback rate
REVEAL_DELAY_SECONDS = 0.5                   # input locked before a correction is revealed
CORRECTION_DWELL_SECONDS = 1.5               # correction stays visible this long before advancing
TTS_RETRY_COUNT = 3                          # max synthesis attempts per utterance
TTS_RETRY_BASE_DELAY = 1.0                   # seconds, base delay for exponential backoff
FALLBACK_VOICE = "fr-FR-DeniseNeural"        # used when the voice catalog is empty
PLAYER_COMMAND = "ffplay"                    # subprocess used to play synthesized clips
DICTATION_REPEATS = 2                        # each sentence is read this many times in rendered audio
PAUSE_REPEAT_MS = 4000                       # ms between two readings of the same sentence
PAUSE_SENTENCE_MS = 6000                     # ms between sentences (writing time)
PAUSE_TITLE_MS = 1500                        # ms after the title announcement
OUTPUT_BITRATE = "128k"                      # MP3 output bitrate for rendered dictations
FETCH_TIMEOUT = 15.0                         # seconds, remote document fetch timeout
VERSION = "0.1.0"
