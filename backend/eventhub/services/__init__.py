# Services package init
"""
EventHub Backend — Services Layer
===================================

What:  Business logic between routes (HTTP) and MongoDB (persistence).

Service Inventory:
    - EventService: document shape, partial updates, pagination, error mapping
    - ImageService: upload size check, content type, base64 encode/decode
"""
