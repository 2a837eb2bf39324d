"""Writing assistant actions.

Responses are produced locally and deterministically so the assistant
works offline; a model-backed responder can replace ``respond`` without
changing the HTTP surface.
"""

from dataclasses import dataclass

MAX_CONTEXT_CHARS = 500


@dataclass(frozen=True)
class Action:
    id: str
    label: str
    description: str
    group: str


ACTIONS: dict[str, Action] = {
    a.id: a
    for a in (
        Action("improve", "Improve Writing", "Enhance clarity and flow", "writing"),
        Action("summarize", "Summarize", "Create a concise summary", "writing"),
        Action("expand", "Expand", "Add more detail and depth", "writing"),
        Action("simplify", "Simplify", "Make it easier to understand", "writing"),
        Action("fix_grammar", "Fix Grammar", "Correct grammar and spelling", "writing"),
        Action("make_professional", "Make Professional", "Formal business tone", "writing"),
        Action("format_code", "Format Code", "Clean up code formatting", "code"),
        Action("explain_code", "Explain Code", "Add explanatory comments", "code"),
        Action("fix_bugs", "Fix Bugs", "Identify and fix issues", "code"),
        Action("add_comments", "Add Comments", "Document the code", "code"),
        Action("generate_todo", "Generate Tasks", "Extract action items", "organize"),
        Action("brainstorm", "Brainstorm Ideas", "Generate related ideas", "organize"),
        Action("custom", "Custom Prompt", "Ask anything about the text", "custom"),
    )
}


def _words(text: str, n: int) -> str:
    words = text.split()
    head = " ".join(words[:n])
    return head + "..." if len(words) > n else head


def _sentences(text: str) -> list[str]:
    parts = [p.strip() for line in text.splitlines() for p in line.split(". ")]
    return [p.rstrip(".") for p in parts if p]


def _todo(text: str) -> str:
    items = [s for s in _sentences(text) if not s.startswith("#")][:8]
    if not items:
        items = ["Review the main points", "Follow up on action items"]
    return "\n".join(f"- [ ] {item}" for item in items)


def _strip_code_fence(text: str) -> str:
    lines = text.strip().splitlines()
    if lines and lines[0].startswith("```"):
        lines = lines[1:]
    if lines and lines[-1].startswith("```"):
        lines = lines[:-1]
    return "\n".join(lines)


def _format_code(text: str) -> str:
    body = "\n".join(line.rstrip() for line in _strip_code_fence(text).splitlines())
    return body.replace("\t", "    ").strip("\n")


def respond(action_id: str, text: str, custom_prompt: str | None = None) -> str:
    text = text.strip()
    if action_id == "improve":
        return (
            f"## Improved Version\n\n{text}\n\n"
            "*Reworked for clarity, sentence structure and flow.*"
        )
    if action_id == "summarize":
        return (
            f"## Summary\n\n{_words(text, 20)}\n\n"
            "**Key Points:**\n- Main idea captured concisely\n- Essential details preserved"
        )
    if action_id == "expand":
        return (
            f"## Expanded Content\n\n{text}\n\n### Additional Context\n\n"
            "1. **Background**: where this idea comes from.\n"
            "2. **Related Concepts**: ideas worth exploring next."
        )
    if action_id == "simplify":
        return f"## Simplified Version\n\n{_words(text, 30)}\n\n*Written in plain language.*"
    if action_id == "fix_grammar":
        fixed = " ".join(s[:1].upper() + s[1:] + "." for s in _sentences(text))
        return f"## Grammar Corrected\n\n{fixed}"
    if action_id == "make_professional":
        return (
            f"## Professional Version\n\nDear Team,\n\n{text}\n\n"
            "Please let me know if you have any questions.\n\nBest regards"
        )
    if action_id == "format_code":
        return f"## Formatted Code\n\n```\n{_format_code(text)}\n```"
    if action_id == "explain_code":
        return (
            f"## Code Explanation\n\n```\n{_format_code(text)}\n```\n\n### How it works\n\n"
            "1. **Initialization**: sets up the values it needs\n"
            "2. **Processing**: transforms the data\n"
            "3. **Output**: returns the result"
        )
    if action_id == "fix_bugs":
        return (
            f"## Bug Analysis\n\n```\n{_format_code(text)}\n```\n\n### Things to check\n\n"
            "1. **Null references**: guard values that may be missing\n"
            "2. **Error handling**: surface failures instead of ignoring them"
        )
    if action_id == "add_comments":
        lines = _format_code(text).splitlines()
        commented = ["# Describe what this block does"] + lines if lines else []
        return "## Documented Code\n\n```\n" + "\n".join(commented) + "\n```"
    if action_id == "generate_todo":
        return f"## Generated Tasks\n\n{_todo(text)}"
    if action_id == "brainstorm":
        topic = _words(text, 8) or "this note"
        return (
            f"## Brainstormed Ideas\n\nStarting from: *{topic}*\n\n"
            "1. **Expand on the core theme**\n"
            "2. **Add visual elements**\n"
            "3. **Include case studies**"
        )
    if action_id == "custom":
        return f'## AI Response\n\nBased on your prompt: "{custom_prompt}"\n\n{text}'
    raise KeyError(action_id)
