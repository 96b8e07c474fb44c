"""
Billing & Usage Tracking Module

Architecture:
    - billing.models: Plans, subscriptions, usage logs, daily analytics rollups
    - billing.plans: Default plan catalog and plan resolution
    - billing.service: Usage recording, plan limits, subscription lifecycle
    - billing.rate_limit: Per-plan, per-endpoint hourly request limits
    - billing.features: Plan feature gate
    - billing.api: Subscription and analytics REST endpoints
"""
