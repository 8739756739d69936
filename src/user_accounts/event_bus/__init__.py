"""Event bus: user event schemas, memory/Redis buses and the user publisher."""
