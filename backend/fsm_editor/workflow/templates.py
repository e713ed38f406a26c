"""
Pre-built Workflow Templates.

Factory functions returning ready-made ``EditorWorkflow`` objects for
the sample entities the editor ships with. Their layouts use the
unescaped target-based transition ids that older exported
documents carry.
"""

from __future__ import annotations

from typing import Callable, Dict, List, Optional

from fsm_editor.workflow.workflow_model import (
    CanvasLayout,
    EditorWorkflow,
    Position,
    StateDefinition,
    StateLayout,
    TransitionDefinition,
    TransitionLayout,
    WorkflowConfiguration,
)

_CREATED_AT = "2024-01-10T08:00:00Z"


class _Builder:
    """Collects states and transitions for one template."""

    def __init__(self, workflow_id: str, entity_id: str, name: str, desc: str) -> None:
        self.workflow_id = workflow_id
        self.entity_id = entity_id
        self.config = WorkflowConfiguration(name=name, desc=desc)
        self.layout = CanvasLayout(workflow_id=workflow_id, updated_at=_CREATED_AT)

    def state(self, sid: str, name: str, x: float, y: float, color: Optional[str] = None) -> None:
        self.config.states[sid] = StateDefinition(name=name)
        if not self.config.initial_state:
            self.config.initial_state = sid
        self.layout.states.append(StateLayout(
            id=sid, position=Position(x=x, y=y),
            properties={"color": color} if color else None,
        ))

    def transition(self, src: str, tgt: str, name: str, manual: bool = False) -> None:
        self.config.states[src].transitions.append(
            TransitionDefinition(name=name, next=tgt, manual=manual)
        )
        # legacy unescaped id, as exported by earlier editor versions
        self.layout.transitions.append(TransitionLayout(id=f"{src}-to-{tgt}"))

    def build(self) -> EditorWorkflow:
        return EditorWorkflow(
            id=self.workflow_id,
            entity_id=self.entity_id,
            configuration=self.config,
            layout=self.layout,
            created_at=_CREATED_AT,
            updated_at=_CREATED_AT,
        )


# ============================================================================
# User Registration
# ============================================================================


def create_user_registration_template() -> EditorWorkflow:
    """New user account creation.

    Topology::
        pending → email-sent → verified
           ↓          ↓
         failed ←─────┘
    """
    b = _Builder("user-registration", "user-entity", "User Registration",
                 "New user account creation process")
    b.state("pending",    "Pending",    100, 100, "#fbbf24")
    b.state("email-sent", "Email Sent", 300, 100, "#60a5fa")
    b.state("verified",   "Verified",   500, 100, "#34d399")
    b.state("failed",     "Failed",     300, 250, "#f87171")

    b.transition("pending", "email-sent", "Send Verification Email")
    b.transition("pending", "failed", "Invalid Email")
    b.transition("email-sent", "verified", "Email Verified", manual=True)
    b.transition("email-sent", "failed", "Verification Timeout")
    return b.build()


# ============================================================================
# User Verification
# ============================================================================


def create_user_verification_template() -> EditorWorkflow:
    """Email verification with a resend loop.

    Topology::
        unverified ⇄ verification-sent → verified
    """
    b = _Builder("user-verification", "user-entity", "User Verification",
                 "Email and identity verification process")
    b.state("unverified",        "Unverified",        100, 100, "#f59e0b")
    b.state("verification-sent", "Verification Sent", 350, 100, "#3b82f6")
    b.state("verified",          "Verified",          600, 100, "#10b981")

    b.transition("unverified", "verification-sent", "Send Verification")
    b.transition("verification-sent", "verified", "Verify Email")
    b.transition("verification-sent", "unverified", "Resend Verification")
    return b.build()


# ============================================================================
# Order Fulfillment
# ============================================================================


def create_order_fulfillment_template() -> EditorWorkflow:
    b = _Builder("order-fulfillment", "order-entity", "Order Fulfillment",
                 "Complete order processing workflow")
    b.state("pending",    "Pending",    100, 100)
    b.state("processing", "Processing", 300, 100)
    b.state("shipped",    "Shipped",    500, 100)
    b.state("delivered",  "Delivered",  700, 100)
    b.state("cancelled",  "Cancelled",  300, 250)

    b.transition("pending", "processing", "Start Processing")
    b.transition("processing", "shipped", "Ship Order")
    b.transition("shipped", "delivered", "Confirm Delivery", manual=True)
    b.transition("pending", "cancelled", "Cancel Order", manual=True)
    return b.build()


# ============================================================================
# Payment Processing
# ============================================================================


def create_payment_processing_template() -> EditorWorkflow:
    b = _Builder("payment-processing", "payment-entity", "Payment Processing",
                 "Payment authorization and settlement")
    b.state("initiated",  "Initiated",  100, 100)
    b.state("authorized", "Authorized", 300, 100)
    b.state("captured",   "Captured",   500, 100)
    b.state("failed",     "Failed",     300, 250)
    b.state("refunded",   "Refunded",   500, 250)

    b.transition("initiated", "authorized", "Authorize Payment")
    b.transition("authorized", "captured", "Capture Payment")
    b.transition("initiated", "failed", "Payment Failed")
    b.transition("captured", "refunded", "Refund Payment", manual=True)
    return b.build()


# ============================================================================
# Template Registry
# ============================================================================

ALL_TEMPLATES: Dict[str, Callable[[], EditorWorkflow]] = {
    "user-registration": create_user_registration_template,
    "user-verification": create_user_verification_template,
    "order-fulfillment": create_order_fulfillment_template,
    "payment-processing": create_payment_processing_template,
}


def list_template_names() -> List[str]:
    return list(ALL_TEMPLATES)


def get_template(name: str) -> Optional[EditorWorkflow]:
    """Build a fresh copy of the named template, or ``None``."""
    factory = ALL_TEMPLATES.get(name)
    return factory() if factory else None
