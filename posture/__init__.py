"""
Posture (SSL Posture Validator)
Deployment security-posture checks

Inspects a runtime's configuration and a live database connection to decide
whether a deployment meets a minimum bar for transport encryption, secret
strength and exposure hygiene.

Licensed under MIT License
"""

__version__ = "1.0.0"
__author__ = "Posture Team"
__description__ = "SSL Posture Validator"

import logging

logging.getLogger(__name__).addHandler(logging.NullHandler())
