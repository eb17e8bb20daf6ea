"""Core validation logic and configuration state.

WHY: The core package holds everything that does not touch HTTP or the
host: container sniffing, the upload rules, and the configuration snapshot
with its store. All of it is pure or lock-guarded and unit-testable.

HOW: sniffer.py checks magic numbers, validation.py applies size/format/
duration limits, settings.py defines the snapshot and ConfigurationStore.

RULES:
- No host calls and no FastAPI imports in this package
- Validation failures raise UploadValidationError with an HTTP status
"""
