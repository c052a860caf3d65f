# app/services/providers.py
"""
Service provider module for dependency injection.
"""
from app.services.completion import generate_text
from app.services.image_generation import generate_image
from app.services.payments import (
    create_checkout_session,
    construct_webhook_event,
    list_sessions_for_payment_intent
)

def get_text_generation_service():
    return generate_text

def get_image_generation_service():
    return generate_image

def get_checkout_service():
    return create_checkout_session

def get_webhook_event_service():
    return construct_webhook_event

def get_session_lookup_service():
    return list_sessions_for_payment_intent
