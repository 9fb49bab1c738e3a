"""
observability — Schema-driven category logging and outcome correlation.

Sub-modules:
    types       — Category / Method enums and the redaction censor token
    schema      — Loading and validating the logger Schema (loggers.json)
    validator   — Required-field checks per (category, method)
    redaction   — Censoring configured field paths before output
    sinks       — LoggerSink capability and the stdlib-backed destination
    registry    — One validating CategoryLogger per configured category
    outcomes    — LoggerMetadata and the success-side ResponseEnvelope
    correlator  — Status code → severity tier, exactly-once emission
"""
