"""
Services module for business logic.

- domain/: application services, one per aggregate (checks, orders,
  modifiers, payments, activity log) plus check totals and settlement.

Usage:
    from rest_api.services.domain import PaymentService
    service = PaymentService(db)
    payment = service.record_payment(data)
"""
