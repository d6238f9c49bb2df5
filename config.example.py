# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Do NOT commit real secrets. Use .env (local, gitignored).

This file exists to make the repo self-documenting even without opening .env.example.
"""

ENV_VARS = {
    # App / logging
    "SMART_TASKS_APP_NAME": "App display name (default: smart-tasks).",
    "SMART_TASKS_LOG_LEVEL": "Console log level (default: WARNING; the log file always gets DEBUG).",
    # Local data (gitignored)
    "SMART_TASKS_DATA_DIR": "Local data directory (default: .local/smart_tasks).",
    "SMART_TASKS_STORAGE_PATH": "Key-value JSON file (default: <data_dir>/storage.json).",
    "SMART_TASKS_STORAGE_KEY": "Key holding the task collection (default: gemini-tasks-ai-data).",
    # Suggestions
    "SMART_TASKS_SUGGESTIONS_ENABLED": "Ask the model for sub-tasks/priority/category (true/false).",
    "SMART_TASKS_API_KEY": "API key (falls back to GEMINI_API_KEY, then API_KEY). Empty => offline mode.",
    "SMART_TASKS_BASE_URL": (
        "OpenAI-compatible endpoint "
        "(default: https://generativelanguage.googleapis.com/v1beta/openai/)."
    ),
    "SMART_TASKS_MODEL": "Model name (default: gemini-3-flash-preview).",
    "SMART_TASKS_CONNECT_TIMEOUT_SECONDS": "HTTP connect timeout (default: 5).",
    "SMART_TASKS_READ_TIMEOUT_SECONDS": "HTTP read timeout (default: 30).",
}
