"""
Stripe Integration Package - DSP
=============================================================

This package centralizes all Stripe-related logic for the DSP backend.

Current Scope
--------------------
- `gateway.StripeGateway`: Checkout Session creation, session lookup and
  webhook signature verification on the raw request body.
- `gateway.get_payment_gateway()`: process-wide gateway built from settings.

Design Rationale
----------------
- Core placement: Located in `core/stripe_integration` so that billing
  is not tied only to e-learning.
- The gateway knows nothing about courses or purchases; the e-learning
  purchase services pass it titles, amounts and metadata and receive
  plain session handles and decoded events back.
"""
