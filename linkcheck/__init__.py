"""Site Link Auditor – core package.

Re-exports all public symbols so consumers can do:
    from linkcheck import run_audit, AuditConfig
or use the top-level module:
    from site_link_auditor import run_audit, AuditConfig
"""

# Models
from .models import (  # noqa: F401
    LinkCandidate,
    ModalState,
    ModalContext,
    StabilitySample,
    StabilityStatus,
    ValidationOutcome,
    AuditConfig,
    PageAudit,
)
from .errors import PageLoadError  # noqa: F401

# Pattern tables
from .patterns import (  # noqa: F401
    MODAL_TRIGGER_SELECTORS,
    OVERLAY_CONTAINER_SELECTOR,
    LENIENT_DOMAINS,
    has_file_extension,
    is_lenient_domain,
    location_label_for,
)

# Discovery
from .visibility import is_visible, check_visibility  # noqa: F401
from .stability import (  # noqa: F401
    StabilityTracker,
    wait_for_dom_ready,
    wait_for_lazy_content,
)
from .selector_chain import synthesize, describe_element  # noqa: F401
from .url_utils import normalize_url, dedupe_candidates  # noqa: F401
from .page_helpers import scroll_to_bottom, dismiss_overlays  # noqa: F401
from .modals import ModalTraversal  # noqa: F401
from .extractor import collect_scope_links, extract_links  # noqa: F401

# Validation
from .validation import LinkChecker, validate_links  # noqa: F401

# Reporting
from .reporting import (  # noqa: F401
    get_short_url,
    generate_report,
    generate_json_report,
)

# Orchestration
from .auditor import audit_page, run_audit  # noqa: F401
