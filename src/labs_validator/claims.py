"""
Pick the endpoint a verified token points at.

A mismatched state is not an error here: the URL simply comes back empty
and the exchange fails later at the transport layer.
"""

SCM_TOKEN_STATE = "scm_token"
VALIDATION_TOKEN_STATE = "validation_token"


def resolve_callback(claims):
    if claims.state == SCM_TOKEN_STATE:
        return claims.callback
    return ""


def resolve_follow_up(claims):
    if claims.state == VALIDATION_TOKEN_STATE:
        return claims.validation_url
    return ""
