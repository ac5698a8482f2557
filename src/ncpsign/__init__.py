"""
ncpsign: Signed requests for the Naver Cloud Platform API Gateway.

Builds the canonical request message, signs it with the account's secret key
and sends the request with the ``x-ncp-*`` authentication headers attached.
"""

__version__ = "1.0.0"
