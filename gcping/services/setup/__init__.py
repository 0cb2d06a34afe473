"""Setup (provisioning) services.

This package contains orchestration helpers that *provision* the network
infrastructure the ping deployments rely on (one subnet per region).
"""
