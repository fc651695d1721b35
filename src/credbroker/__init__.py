"""
Encrypted-credential broker: envelope cipher for stored exchange secrets and signed,
cached exchange REST client.
"""
