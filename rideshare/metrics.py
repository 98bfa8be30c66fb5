from prometheus_client import Counter, Histogram

# Booking lifecycle
BOOKING_TRANSITIONS = Counter("rideshare_booking_transitions_total", "Booking status transitions committed", ["transition"])
BUSINESS_RULE_VIOLATIONS = Counter("rideshare_business_rule_violations_total", "Requests rejected by a named service error", ["code"])
ACCEPT_LATENCY = Histogram("rideshare_booking_accept_latency_seconds", "Latency of the accept-booking transaction")

# Ride inventory
RIDE_EVENTS = Counter("rideshare_ride_events_total", "Ride inventory changes", ["event"])

# Search logging (fire-and-forget)
SEARCH_LOG_WRITES = Counter("rideshare_search_log_writes_total", "Search events persisted")
SEARCH_LOG_FAILURES = Counter("rideshare_search_log_failures_total", "Search events that failed to persist")
