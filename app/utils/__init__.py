"""
UTILITIES PACKAGE
=================

Helpers used by the services and the API layer (no business logic):

  time_info - iso_timestamp(): current UTC time for envelopes and stream events.
  retry     - with_retry(fn): awaits fn(); on failure retries with exponential backoff, per-attempt timeout.
  response  - success/error envelopes with correlation ids, exception -> envelope mapping.
"""
