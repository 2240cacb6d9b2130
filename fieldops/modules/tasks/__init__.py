"""Task lifecycle: status workflow, access policy and the task service."""
