from dataclasses import dataclass
from datetime import date


@dataclass(frozen=True)
class NoteTemplate:
    id: str
    title: str
    description: str
    icon: str
    category: str
    content: str

    def render(self, today: date | None = None) -> str:
        today = today or date.today()
        return self.content.replace("{date}", today.isoformat())


TEMPLATE_CATEGORIES: dict[str, tuple[str, str]] = {
    "productivity": ("Productivity", "#3B82F6"),
    "personal": ("Personal", "#10B981"),
    "development": ("Development", "#8B5CF6"),
    "creative": ("Creative", "#F59E0B"),
}

_TEMPLATES = [
    NoteTemplate(
        id="meeting-notes-simple",
        title="Meeting Notes (Simple)",
        description="Quick and minimal meeting notes template",
        icon="message-square",
        category="productivity",
        content="""# Meeting Notes

**Date:** {date}
**Topic:**

---

## Notes


## Action Items
- [ ]
- [ ]

## Next Meeting

""",
    ),
    NoteTemplate(
        id="meeting-notes-advanced",
        title="Meeting Notes (Advanced)",
        description="Comprehensive template for detailed meeting documentation",
        icon="users",
        category="productivity",
        content="""# Meeting Notes

**Date:** {date}
**Time:**
**Location/Platform:**
**Meeting Type:** Weekly Sync / Sprint Planning / Review / Other

---

## Attendees
| Name | Role | Present |
|------|------|---------|
| | | |

## Agenda
1. [ ]
2. [ ]

## Discussion Points

### Topic 1
**Summary:**

**Decisions Made:**
-

## Action Items
| Task | Owner | Due |
|------|-------|-----|
| | | |
""",
    ),
    NoteTemplate(
        id="project-plan",
        title="Project Plan",
        description="Outline goals, milestones and risks for a project",
        icon="briefcase",
        category="productivity",
        content="""# Project Plan

**Start date:** {date}
**Owner:**

## Goals
-

## Milestones
| Milestone | Target date | Status |
|-----------|-------------|--------|
| | | |

## Risks
-

## Resources
-
""",
    ),
    NoteTemplate(
        id="todo-list",
        title="To-Do List",
        description="Simple prioritized task list",
        icon="check-square",
        category="productivity",
        content="""# To-Do List ({date})

## High Priority
- [ ]

## Medium Priority
- [ ]

## Low Priority
- [ ]
""",
    ),
    NoteTemplate(
        id="software-analysis",
        title="Software Requirements",
        description="Capture requirements and constraints for a feature",
        icon="file-code",
        category="development",
        content="""# Software Requirements

**Date:** {date}

## Overview

## Functional Requirements
1.

## Non-functional Requirements
-

## Open Questions
-
""",
    ),
    NoteTemplate(
        id="code-snippet",
        title="Code Snippet",
        description="Document a reusable piece of code",
        icon="code",
        category="development",
        content="""# Code Snippet

**Language:**
**Added:** {date}

## Description

## Code
```

```

## Usage
""",
    ),
    NoteTemplate(
        id="daily-journal",
        title="Daily Journal",
        description="Reflect on your day",
        icon="calendar",
        category="personal",
        content="""# Journal - {date}

## Grateful for
1.

## Highlights

## What I learned

## Tomorrow
-
""",
    ),
    NoteTemplate(
        id="book-notes",
        title="Book Notes",
        description="Key ideas and quotes from a book",
        icon="book-open",
        category="personal",
        content="""# Book Notes

**Title:**
**Author:**
**Started:** {date}

## Key Ideas
-

## Favorite Quotes
>

## Takeaways
""",
    ),
    NoteTemplate(
        id="recipe",
        title="Recipe",
        description="Ingredients and steps for a dish",
        icon="utensils",
        category="personal",
        content="""# Recipe

**Servings:**
**Prep time:**

## Ingredients
-

## Steps
1.

## Notes
""",
    ),
    NoteTemplate(
        id="blog-post",
        title="Blog Post",
        description="Draft structure for an article",
        icon="file-text",
        category="creative",
        content="""# Title

*Draft started {date}*

## Introduction

## Main Points
### Point 1

### Point 2

## Conclusion
""",
    ),
    NoteTemplate(
        id="brainstorm",
        title="Brainstorm",
        description="Capture ideas without judgement",
        icon="lightbulb",
        category="creative",
        content="""# Brainstorm

**Topic:**
**Date:** {date}

## Ideas
-

## Best Candidates
1.

## Next Steps
- [ ]
""",
    ),
    NoteTemplate(
        id="goal-tracker",
        title="Goal Tracker",
        description="Track progress toward a goal",
        icon="target",
        category="productivity",
        content="""# Goal Tracker

**Goal:**
**Started:** {date}
**Deadline:**

## Milestones
| Milestone | Target | Status |
|-----------|--------|--------|
| | | |

## Weekly Progress

## Obstacles & Solutions
| Obstacle | Solution |
|----------|----------|
| | |
""",
    ),
]

TEMPLATES: dict[str, NoteTemplate] = {t.id: t for t in _TEMPLATES}


def list_templates(category: str | None = None) -> list[NoteTemplate]:
    if category:
        return [t for t in _TEMPLATES if t.category == category]
    return list(_TEMPLATES)


def get_template(template_id: str) -> NoteTemplate | None:
    return TEMPLATES.get(template_id)
