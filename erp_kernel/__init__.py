"""
ERP Kernel - approval routing core

Pure, side-effect-free approval routing for Memo, Leave and Requisition
documents:
- Department-dependent sequential approval chains
- Role-gated approve / reject / pay transitions
- Single-authority tab classification
- Memo report acknowledgment tracking
"""

__version__ = "0.1.0"
