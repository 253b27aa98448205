"""Tool-call boundary between an LLM decision loop and the subagent planner core."""
