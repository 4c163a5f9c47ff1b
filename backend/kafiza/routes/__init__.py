"""
Kafiza Backend — API Routes Package
=====================================

Route Inventory:
    - farmers.py:   /api/farmers, /api/farmers/{id}
    - roasters.py:  /api/roasters, /api/roasters/{id},
                    /api/roasters/{id}/subscription-tier
    - payments.py:  POST /api/payments/create-intent
    - health.py:    GET  /api/health

Farmers and roasters are produced by one factory in resources.py. Routes stay
thin: read the request, call the repository, wrap the result in the envelope.
"""
