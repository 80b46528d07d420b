"""Constantes HTTP partagées par l'enveloppe d'erreur et les clients sortants."""

# Statuts renvoyés par l'API
HTTP_OK = 200
HTTP_BAD_REQUEST = 400
HTTP_UNAUTHORIZED = 401
HTTP_NOT_FOUND = 404
HTTP_CONFLICT = 409
HTTP_UNPROCESSABLE_ENTITY = 422
HTTP_INTERNAL_SERVER_ERROR = 500

# Appels sortants (Stripe, SendGrid)
MAX_RETRIES = 3
EMAIL_CONNECT_TIMEOUT = 5.0
EMAIL_IO_TIMEOUT = 10.0
