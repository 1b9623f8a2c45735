"""Execution pipeline for the Maistro server.

This package contains the core execution components:

- **errors**: Terminal failure kinds reported as ``error`` events
- **prompts**: Prompt materialization (Configuration -> prompt files)
- **sessions**: Agent session naming and fresh-run reset
- **switcher**: Model switching (agent CLI YAML config mutation)
- **extensions**: Tool-binding resolution (MCP server ids -> CLI flags)
- **discovery**: Locating the agent CLI executable
- **process**: Subprocess spawning and output streaming
- **coordinator**: Execution orchestration (prepare -> steps -> trigger)
"""
