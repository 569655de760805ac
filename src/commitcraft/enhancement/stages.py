"""Built-in enhancement stages, in chain order."""

import re

from commitcraft.analysis import conventions
from commitcraft.enhancement.base import EnhancementContext, EnhancementStage, StageOutput
from commitcraft.enhancement.exceptions import EnhancementError
from commitcraft.models.analysis_models import VersionBump
from commitcraft.models.record_models import CommitFormat, Sentiment, Tone

MAX_SUBJECT_CHARS = 72
MAX_BODY_LINE_CHARS = 100

CONVENTIONAL_TYPES = (
    "feat", "fix", "chore", "docs", "style", "refactor", "test", "perf", "ci", "build", "revert",
)
CONVENTIONAL_RE = re.compile(rf"^({'|'.join(CONVENTIONAL_TYPES)})(\([^)]+\))?!?: \S.*$")
JIRA_RE = re.compile(r"^[A-Z][A-Z0-9]+-\d+: \S.*$")


def split_message(message: str) -> tuple[str, list[str]]:
    lines = message.split("\n")
    return lines[0], lines[1:]


def _match_case(original: str, replacement: str) -> str:
    if original[:1].isupper():
        return replacement[:1].upper() + replacement[1:]
    return replacement


# ---------------------------------------------------------------------------
# 1. Format validation
# ---------------------------------------------------------------------------

class FormatValidationStage(EnhancementStage):
    """Checks the message shape against the preferred commit format."""

    name = "linted"
    preference = "enable_commit_linting"

    def apply(self, message: str, context: EnhancementContext) -> StageOutput:
        try:
            commit_format = CommitFormat(context.preferred_format)
        except ValueError as exc:
            raise EnhancementError(f"Unknown commit format: {context.preferred_format!r}", self.name) from exc

        subject, body = split_message(message)
        warnings: list[str] = []
        suggestions: list[str] = []

        if not subject.strip():
            warnings.append("Commit message has an empty subject line")
            valid = False
        elif commit_format == CommitFormat.CONVENTIONAL:
            valid = CONVENTIONAL_RE.match(subject) is not None
            if not valid:
                warnings.append("Subject does not follow the conventional `type(scope): subject` format")
                if context.analysis is not None:
                    prefix = conventions.format_prefix(
                        context.analysis.suggested_type, context.analysis.suggested_scope,
                    )
                    suggestions.append(f"Start the subject with `{prefix}: ...` to match the diff")
                else:
                    suggestions.append("Start the subject with a type such as `feat(ui): ...` or `fix(api): ...`")
        elif commit_format == CommitFormat.JIRA:
            valid = JIRA_RE.match(subject) is not None
            if not valid:
                warnings.append("Subject does not start with a ticket key such as `PROJ-123: `")
        else:
            valid = True

        if len(subject) > MAX_SUBJECT_CHARS:
            warnings.append(f"Subject line is {len(subject)} characters (max {MAX_SUBJECT_CHARS})")
            valid = False
        if body and body[0].strip():
            warnings.append("Separate the subject from the body with a blank line")
        for number, line in enumerate(body, start=2):
            if len(line) > MAX_BODY_LINE_CHARS:
                warnings.append(f"Line {number} is {len(line)} characters (max {MAX_BODY_LINE_CHARS})")
        if "TODO" in message:
            warnings.append("Commit message contains a TODO")

        return StageOutput(
            message=message,
            applied=True,
            warnings=warnings,
            suggestions=suggestions,
            metadata={"format_valid": valid},
        )


# ---------------------------------------------------------------------------
# 2. Grammar / spelling
# ---------------------------------------------------------------------------

DEFAULT_CORRECTIONS: list[tuple[str, str]] = [
    (r"\bIts a\b", "It's a"),
    (r"\bteh\b", "the"),
    (r"\brecieve", "receive"),
    (r"\bseperat", "separat"),
    (r"\boccured\b", "occurred"),
    (r"\bdefinately\b", "definitely"),
    (r"\bdependancy\b", "dependency"),
    (r"\bdependancies\b", "dependencies"),
    (r"\benviroment", "environment"),
    (r"\bparamter", "parameter"),
    (r"\bsucess", "success"),
    (r"\bsucessful", "successful"),
    (r"\blenght\b", "length"),
    (r"\bretreive", "retrieve"),
]

# Past-tense subject verbs rewritten to the imperative mood
PAST_TO_IMPERATIVE = {
    "added": "add",
    "fixed": "fix",
    "removed": "remove",
    "updated": "update",
    "changed": "change",
    "refactored": "refactor",
    "implemented": "implement",
    "improved": "improve",
    "renamed": "rename",
    "moved": "move",
    "deleted": "delete",
    "created": "create",
    "replaced": "replace",
    "bumped": "bump",
}

_SUBJECT_VERB_RE = re.compile(r"^((?:[a-z]+(?:\([^)]*\))?!?:\s*)?)([A-Za-z]+)")


class GrammarCorrectionStage(EnhancementStage):
    """Applies substring corrections and rewrites a past-tense subject verb."""

    name = "grammar-corrected"
    preference = "enable_grammar_correction"

    def __init__(self, corrections: list[tuple[str, str]] | None = None) -> None:
        pairs = DEFAULT_CORRECTIONS if corrections is None else corrections
        self.corrections = [(re.compile(pattern, re.IGNORECASE), repl) for pattern, repl in pairs]

    def _imperative_subject(self, message: str) -> str:
        subject, body = split_message(message)
        match = _SUBJECT_VERB_RE.match(subject)
        if match is None:
            return message
        verb = match.group(2)
        imperative = PAST_TO_IMPERATIVE.get(verb.lower())
        if imperative is None:
            return message
        fixed = match.group(1) + _match_case(verb, imperative) + subject[match.end():]
        return "\n".join([fixed, *body])

    def apply(self, message: str, context: EnhancementContext) -> StageOutput:
        corrected = message
        for pattern, replacement in self.corrections:
            corrected = pattern.sub(lambda m, r=replacement: _match_case(m.group(0), r), corrected)
        corrected = self._imperative_subject(corrected)
        if message.strip() and not corrected.strip():
            raise EnhancementError("Correction produced an empty message", self.name)
        return StageOutput(message=corrected, applied=corrected != message)


# ---------------------------------------------------------------------------
# 3. Emoji suggestion
# ---------------------------------------------------------------------------

TYPE_EMOJIS = {
    "feat": "✨",
    "fix": "🐛",
    "docs": "📝",
    "style": "💎",
    "refactor": "📦",
    "perf": "⚡",
    "test": "✅",
    "build": "🚀",
    "ci": "⚙️",
    "chore": "🧹",
    "revert": "⏪",
}

KEYWORD_EMOJIS: list[tuple[tuple[str, ...], str]] = [
    (("feat", "add"), "✨"),
    (("fix", "bug"), "🐛"),
    (("docs",), "📚"),
    (("refactor",), "♻️"),
    (("test",), "🧪"),
]

MANIFEST_EMOJI = "📦"
MANIFEST_FILES = ("package.json", "yarn.lock", "package-lock.json", "pyproject.toml", "requirements.txt")
TEST_PATH_RE = re.compile(r"(^|/)(tests?|__tests__)/|\.(test|spec)\.\w+")

KNOWN_EMOJIS = frozenset(TYPE_EMOJIS.values()) | {emoji for _, emoji in KEYWORD_EMOJIS} | {MANIFEST_EMOJI}
# Characters to skip before a type prefix; includes the emoji variation selector
_EMOJI_CHARS = "".join(KNOWN_EMOJIS) + " \ufe0f"


def _keyword_re(keyword: str) -> re.Pattern[str]:
    return re.compile(rf"\b{re.escape(keyword)}(s|es|ed|ing)?\b", re.IGNORECASE)


class EmojiSuggestionStage(EnhancementStage):
    """Suggests emoji from the commit type, message words and touched files."""

    name = "emoji-added"
    preference = "enable_emoji_suggestions"

    def __init__(self, auto_prefix: bool = True) -> None:
        self.auto_prefix = auto_prefix
        self._keyword_patterns = [
            ([_keyword_re(keyword) for keyword in keywords], emoji)
            for keywords, emoji in KEYWORD_EMOJIS
        ]

    def candidates(self, message: str, diff_text: str) -> list[str]:
        found: list[str] = []
        subject, _ = split_message(message)
        type_match = CONVENTIONAL_RE.match(subject)
        if type_match is not None:
            found.append(TYPE_EMOJIS[type_match.group(1)])
        for patterns, emoji in self._keyword_patterns:
            if any(pattern.search(message) for pattern in patterns):
                found.append(emoji)
        if any(name in diff_text for name in MANIFEST_FILES):
            found.append(MANIFEST_EMOJI)
        if TEST_PATH_RE.search(diff_text):
            found.append("🧪")
        return list(dict.fromkeys(found))

    def apply(self, message: str, context: EnhancementContext) -> StageOutput:
        candidates = self.candidates(message, context.diff_text)
        if not candidates:
            return StageOutput(message=message)

        suggestions = [f"Emoji suggestions: {' '.join(candidates)}"]
        top = candidates[0]
        stripped = message.lstrip()
        already_present = top in message or any(stripped.startswith(e) for e in KNOWN_EMOJIS)
        if not self.auto_prefix or already_present or not stripped:
            return StageOutput(message=message, suggestions=suggestions)
        return StageOutput(message=f"{top} {message}", applied=True, suggestions=suggestions)


# ---------------------------------------------------------------------------
# 4. Sentiment
# ---------------------------------------------------------------------------

NEGATIVE_RE = re.compile(r"\b(bugs?|errors?|issues?|fail(s|ed|ing|ure)?)\b", re.IGNORECASE)
POSITIVE_RE = re.compile(r"\b(feat|improv(e|es|ed|ing)|enhanc(e|es|ed|ing)|add(s|ed|ing)?)\b", re.IGNORECASE)


def classify_sentiment(message: str) -> Sentiment:
    if NEGATIVE_RE.search(message):
        return Sentiment.NEGATIVE
    if POSITIVE_RE.search(message):
        return Sentiment.POSITIVE
    return Sentiment.NEUTRAL


class SentimentStage(EnhancementStage):
    name = "sentiment-analyzed"
    preference = "enable_sentiment_analysis"

    def apply(self, message: str, context: EnhancementContext) -> StageOutput:
        sentiment = classify_sentiment(message)
        warnings = []
        if sentiment == Sentiment.NEGATIVE:
            warnings.append("Message reads negatively; describe what the change does rather than what was broken")
        return StageOutput(
            message=message,
            applied=True,
            warnings=warnings,
            metadata={"sentiment": sentiment},
        )


# ---------------------------------------------------------------------------
# 5. Tone
# ---------------------------------------------------------------------------

FORMAL_RE = re.compile(r"\b(urgent|critical|immediately|mandatory)\b", re.IGNORECASE)
INFORMAL_RE = re.compile(r"\b(lol|thx|pls|plz|omg|gonna|wanna)\b|!!", re.IGNORECASE)


def classify_tone(message: str) -> Tone:
    if FORMAL_RE.search(message):
        return Tone.FORMAL
    if INFORMAL_RE.search(message):
        return Tone.INFORMAL
    return Tone.TECHNICAL


class ToneStage(EnhancementStage):
    name = "tone-analyzed"
    preference = "enable_tone_analysis"

    def apply(self, message: str, context: EnhancementContext) -> StageOutput:
        tone = classify_tone(message)
        warnings = []
        if tone != Tone.TECHNICAL and CommitFormat(context.preferred_format) == CommitFormat.CONVENTIONAL:
            warnings.append(f"{tone.value.capitalize()} tone does not match the conventional commit format")
        return StageOutput(message=message, applied=True, warnings=warnings, metadata={"tone": tone})


# ---------------------------------------------------------------------------
# 6. Semantic version bump
# ---------------------------------------------------------------------------

class VersionBumpStage(EnhancementStage):
    """Suggests a semver bump from the message type and the diff analysis.

    A conventional type in the message wins over the type inferred from the
    diff. Needs an analysis; without one the stage does nothing.
    """

    name = "version-suggested"
    preference = "enable_version_suggestions"

    def apply(self, message: str, context: EnhancementContext) -> StageOutput:
        analysis = context.analysis
        if analysis is None:
            return StageOutput(message=message)

        subject, _ = split_message(message)
        type_match = CONVENTIONAL_RE.match(subject.lstrip(_EMOJI_CHARS))
        commit_type = type_match.group(1) if type_match is not None else analysis.suggested_type
        breaking = analysis.breaking_change or conventions.message_declares_breaking(message)
        bump = conventions.suggest_version_bump(commit_type, breaking)

        suggestions = []
        if bump != VersionBump.NONE:
            suggestions.append(f"Suggested version bump: {bump.value}")
        if analysis.breaking_change and not conventions.message_declares_breaking(message):
            suggestions.append(
                "The diff removes public definitions; mark the subject with `!` or add a BREAKING CHANGE footer"
            )
        return StageOutput(
            message=message,
            applied=True,
            suggestions=suggestions,
            metadata={"version_bump": bump},
        )


def default_stages() -> list[EnhancementStage]:
    return [
        FormatValidationStage(),
        GrammarCorrectionStage(),
        EmojiSuggestionStage(),
        SentimentStage(),
        ToneStage(),
        VersionBumpStage(),
    ]
