"""
IPGuard - Intellectual Property Infringement Monitoring

Scrapes monitored pages, scores them for infringement risk with an AI
assessment, and escalates high-risk findings into evidence-backed cases.
"""

__version__ = "0.1.0"
