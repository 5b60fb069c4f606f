"""System instruction injected in front of every completion request."""

SYSTEM_PROMPT = "Je bent een behulpzame assistent."
