import base64


def b64encode_payload(data):
    """
    Standard base64 (with padding) as used in the exchange envelope.
    """
    encoded = base64.b64encode(data)
    return encoded.decode("ascii")


def b64decode_payload(text):
    return base64.b64decode(text.encode("ascii"), validate=True)


def b64url_token(token):
    """
    URL-safe base64 of a raw token string, padding kept.
    This is the form users paste into the validation page.
    """
    encoded = base64.urlsafe_b64encode(token.encode("utf-8"))
    return encoded.decode("ascii")
