"""fieldops - HVAC field-service task management."""
