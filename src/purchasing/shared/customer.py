"""Billing party attached to carts and purchases."""

from protean.fields import Integer, String

from purchasing.domain import purchasing


@purchasing.value_object
class Customer:
    customer_id = Integer()
    name = String(required=True, max_length=255)
    zip = String(max_length=20)
    location = String(max_length=255)
    street = String(max_length=255)
    tax_number = String(max_length=50)
