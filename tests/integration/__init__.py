"""
Integration tests for resilient_transport.

Test components together through a real httpx.AsyncClient:
- create_client wiring (RetryTransport in front of the wire transport)
- Body replay of JSON and raw payloads across attempts
- Cancellation and deadlines passed as request extensions
"""
