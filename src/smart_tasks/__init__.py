"""smart-tasks: console to-do list with AI-suggested sub-tasks, priorities and categories."""
