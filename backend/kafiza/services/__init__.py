"""
Kafiza Backend — Services Layer
=================================

Service Inventory:
    - repository.py:       ResourceKind descriptor and the generic ResourceRepository
    - farmers.py:          Farmer kind
    - roasters.py:         Roaster kind and RoasterRepository (tier changes)
    - payment_service.py:  Provisional payment intents
"""
