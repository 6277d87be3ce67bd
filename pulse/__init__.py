"""
Pulse — metric aggregation and gauge engine for a real-time monitoring dashboard.

Submodules:
    language    — stop-word language detection and per-language keyword polarity
    regions     — content/source region classification and cultural corrections
    aggregation — diversity-balanced (group-share capped) aggregation
    bias        — bias transparency report, skew flags and confidence
    sentiment   — batch sentiment analyzer (scatter per item, gather and reduce)
    gauges      — gauge data model and the pure update pipeline
    store       — thread-safe per-category gauge store with subscriptions
    tasks       — periodic baseline refresh
    service     — engine wiring (store + analyzer + refresher)
"""
