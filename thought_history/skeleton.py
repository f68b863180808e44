"""Fixed files and directories written when a repository is created."""

from __future__ import annotations

import json

from thought_history.config import HistoryConfig
from thought_history.models.documents import (
    ANALYSIS_DIR,
    COLLABORATORS_DIR,
    EXPORTS_DIR,
    THOUGHTS_DIR,
)

SKELETON_DIRS = (THOUGHTS_DIR, ANALYSIS_DIR, EXPORTS_DIR, COLLABORATORS_DIR)

README_TEMPLATE = """\
# Thought History Repository

This repository contains the thought history and reasoning patterns of AI agents.

## Structure

- `thoughts/` - Per-agent thought records and batch summaries
- `analysis/` - Pattern analysis and insights
- `exports/` - Exported snapshots (not committed)
- `collaborators/` - Collaboration data

## Branches

- `main` - Batch summaries
- `{prefix}/agent-{{id}}` - Agent-specific thoughts
- `analysis/patterns` - Reasoning pattern analysis
- `analysis/learning` - Learning progress analysis (reserved)

## Tags

- `agent-{{id}}-{{YYYY-MM-DD}}` - Days on which an agent produced high-confidence thoughts

## Usage

```bash
# View thought history
git log --oneline --all

# View specific agent thoughts
git log --oneline {prefix}/agent-{{id}}

# Export thoughts
git archive --format=zip --output=thoughts.zip HEAD
```

## Configuration

See `config.json` for the configuration this repository was created with.
"""

GITIGNORE = """\
# Temporary files
*.tmp
*.log
*.cache

# Environment files
.env
.env.local

# IDE files
.vscode/
.idea/

# OS files
.DS_Store
Thumbs.db

# Exports
exports/thought-history-*
*.zip
*.tar
*.tar.gz

# Sensitive data
secrets/
private/
"""


def skeleton_files(config: HistoryConfig) -> dict[str, str]:
    """Return path → content for the initial commit."""
    files = {
        "README.md": README_TEMPLATE.format(prefix=config.branch_prefix),
        ".gitignore": GITIGNORE,
        "config.json": json.dumps(config.to_document(), indent=2) + "\n",
    }
    for directory in SKELETON_DIRS:
        files[f"{directory}/.gitkeep"] = ""
    return files
