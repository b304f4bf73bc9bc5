"""Project-wide named constants.

Table names and the bounded column sets of the normalized store live here so
that the schema, the normalizer and the tests agree on one definition.
"""

# Speaker codes reserved by the corpus for turns whose speaker could not be
# identified (PS000) or that were produced by a group of speakers (PS001).
PLACEHOLDER_SPEAKERS: frozenset[str] = frozenset({"PS000", "PS001"})

# Spoken text types (stext/@type)
CONVERSATION_TYPE = "CONVRSN"
CONTEXT_GOVERNED_TYPE = "OTHERSP"

# Source element renamed before storage: <dialect> child text collides with
# the dialect attribute on <person>.
RENAMED_ELEMENTS: dict[str, str] = {"dialect": "dialectDetail"}

SETTINGS_TABLE = "settings"
PEOPLE_TABLE = "people"
LINKS_TABLE = "setting_people"
SENTENCES_TABLE = "sentences"
WORDS_TABLE = "words"

# Emission order: parents before children so foreign keys always resolve.
TABLES: tuple[str, ...] = (
    SETTINGS_TABLE,
    PEOPLE_TABLE,
    LINKS_TABLE,
    SENTENCES_TABLE,
    WORDS_TABLE,
)

# Attributes a declared Record may carry, per emitted entity kind.
PERSON_ATTRIBUTES: tuple[str, ...] = (
    "ageGroup",
    "age",
    "dialect",
    "dialectDetail",
    "educ",
    "firstLang",
    "occupation",
    "persName",
    "role",
    "sex",
    "soc",
)
SETTING_ATTRIBUTES: tuple[str, ...] = (
    "who",
    "locale",
    "placeName",
    "activity",
)

# Sentence summary counter columns, in EventCounts field order.
COUNT_COLUMNS: tuple[str, ...] = ("n_w", "n_c", "n_unclear", "n_vocal", "n_gap")
