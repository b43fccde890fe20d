"""
Answer Extraction.

Pulls the reply text out of a Langflow run response. The response shape
depends on the flow's components, so extraction is an ordered search over
a fixed list of field paths, stopping at the first non-blank string.

Response layout (typical):

    {
      "outputs": [                               # one section per output component
        {
          "component_name": "ChatOutput",
          "outputs": [                           # entries, scanned in order
            {"results": {"message": {"text": "..."}}}
          ]
        }
      ],
      "message": "..."                           # occasional flat fallback
    }
"""

from dataclasses import dataclass
from typing import Union

JSONValue = Union[None, bool, int, float, str, list["JSONValue"], dict[str, "JSONValue"]]

PathStep = Union[str, int]


@dataclass(frozen=True)
class AnswerRule:
    """A named path into a JSON document."""

    name: str
    path: tuple[PathStep, ...]

    def apply(self, value: JSONValue) -> str | None:
        found = lookup(value, self.path)
        if isinstance(found, str) and found.strip():
            return found
        return None


# Checked against each entry of the selected output section, in order.
ENTRY_RULES: tuple[AnswerRule, ...] = (
    AnswerRule("results.message.text", ("results", "message", "text")),
    AnswerRule("results.message.data.text", ("results", "message", "data", "text")),
    AnswerRule("results.text", ("results", "text")),
    AnswerRule("results.output_text", ("results", "output_text")),
    AnswerRule("outputs.message.message.text", ("outputs", "message", "message", "text")),
    AnswerRule("outputs.message.message", ("outputs", "message", "message")),
    AnswerRule("outputs.text.message", ("outputs", "text", "message")),
    AnswerRule("artifacts.message", ("artifacts", "message")),
    AnswerRule("messages.0.message", ("messages", 0, "message")),
    AnswerRule("message.text", ("message", "text")),
    AnswerRule("text", ("text",)),
    AnswerRule("output_text", ("output_text",)),
    AnswerRule("data.text", ("data", "text")),
    AnswerRule("content", ("content",)),
)

# Checked against the response root when no entry yields text.
FALLBACK_RULES: tuple[AnswerRule, ...] = (
    AnswerRule("text", ("text",)),
    AnswerRule("message", ("message",)),
    AnswerRule("output_text", ("output_text",)),
    AnswerRule("message.text", ("message", "text")),
    AnswerRule("result", ("result",)),
)


def lookup(value: JSONValue, path: tuple[PathStep, ...]) -> JSONValue:
    """Follow ``path`` through dicts and lists; None when any step is missing."""
    current = value
    for step in path:
        if isinstance(step, int):
            if not isinstance(current, list) or not -len(current) <= step < len(current):
                return None
            current = current[step]
        else:
            if not isinstance(current, dict):
                return None
            current = current.get(step)
        if current is None:
            return None
    return current


def select_output_section(
    data: JSONValue, expected_component: str | None = None
) -> dict[str, JSONValue] | None:
    """
    Pick the output section to read from.

    With several sections, the one produced by ``expected_component``
    wins; otherwise the first section is used.
    """
    sections = lookup(data, ("outputs",))
    if not isinstance(sections, list):
        return None

    candidates = [section for section in sections if isinstance(section, dict)]
    if not candidates:
        return None

    if expected_component and len(candidates) > 1:
        for section in candidates:
            if expected_component in (section.get("component_name"), section.get("component_id")):
                return section

    return candidates[0]


def _first_match(value: JSONValue, rules: tuple[AnswerRule, ...]) -> str | None:
    for rule in rules:
        text = rule.apply(value)
        if text is not None:
            return text
    return None


def extract_answer(data: JSONValue, expected_component: str | None = None) -> str | None:
    """
    Extract the answer text from a Langflow response.

    Returns None when nothing usable is found. Never raises.
    """
    section = select_output_section(data, expected_component)
    if section is not None:
        entries = section.get("outputs")
        if isinstance(entries, list):
            for entry in entries:
                text = _first_match(entry, ENTRY_RULES)
                if text is not None:
                    return text

    return _first_match(data, FALLBACK_RULES)
