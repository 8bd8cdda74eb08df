"""
Bartender token parsing and product code resolution.
"""

import pytest

from festgo.errors import InvalidFormat, NotFound, ValidationError
from festgo.models import Product
from festgo.services import catalog_service
from festgo.services.catalog_service import (
    EventCatalogResolver,
    GlobalCatalogResolver,
    MAX_TOKEN_QUANTITY,
    normalize_code,
    parse_token,
)


# =============================================================================
# TOKEN PARSING
# =============================================================================


class TestParseToken:
    @pytest.mark.parametrize(
        "raw,code,quantity",
        [
            ("CCC", "CCC", 1),
            ("CCC2", "CCC", 2),
            ("3CE", "CE", 3),
            ("ce", "CE", 1),
            (" 2 ccc ", "CCC", 2),
            ("AG10", "AG", 10),
            (f"{MAX_TOKEN_QUANTITY}AG", "AG", MAX_TOKEN_QUANTITY),
        ],
    )
    def test_accepts_code_with_optional_quantity(self, raw, code, quantity):
        parsed = parse_token(raw)
        assert parsed.code == code
        assert parsed.quantity == quantity

    @pytest.mark.parametrize(
        "raw",
        ["", "12X", "X", "ABCD", "2CC3", "CC0", "0CC", "C-C", "CC-2", "12", f"CC{MAX_TOKEN_QUANTITY + 1}"],
    )
    def test_rejects_malformed_input(self, raw):
        with pytest.raises(InvalidFormat):
            parse_token(raw)

    def test_rejects_missing_input(self):
        with pytest.raises(InvalidFormat):
            parse_token(None)

    def test_invalid_format_is_a_validation_error(self):
        with pytest.raises(ValidationError) as exc:
            parse_token("12X")
        assert exc.value.kind == "invalid_format"
        assert exc.value.status_code == 400

    def test_normalize_code(self):
        assert normalize_code(" ccc ") == "CCC"
        with pytest.raises(ValidationError):
            normalize_code("C1")


# =============================================================================
# RESOLUTION
# =============================================================================


class TestResolve:
    def test_returns_product_and_quantity(self, db_session, event, products):
        resolution = catalog_service.resolve("2ccc", event.id)
        assert resolution.product.id == products["CCC"].id
        assert resolution.quantity == 2

    def test_unknown_code_is_not_found(self, db_session, event, products):
        with pytest.raises(NotFound) as exc:
            catalog_service.resolve("ZZ", event.id)
        assert exc.value.details["code"] == "ZZ"

    def test_does_not_match_inactive_products(self, db_session, event, products):
        products["AG"].is_active = False
        db_session.commit()

        with pytest.raises(NotFound):
            catalog_service.resolve("AG", event.id)

    def test_parse_error_wins_over_lookup(self, db_session, event, products):
        with pytest.raises(InvalidFormat):
            catalog_service.resolve("12X", event.id)

    def test_event_scope_only_sees_event_products(self, db_session, event, other_event):
        db_session.add_all([
            Product(code="VN", name="Vino", price_cents=800, event_id=event.id),
            Product(code="FN", name="Fernet", price_cents=1200, event_id=other_event.id),
        ])
        db_session.commit()

        resolver = EventCatalogResolver()
        assert catalog_service.resolve("VN", event.id, resolver=resolver).product.name == "Vino"
        with pytest.raises(NotFound):
            catalog_service.resolve("FN", event.id, resolver=resolver)

        # The global catalog ignores the binding
        assert catalog_service.resolve("FN", event.id, resolver=GlobalCatalogResolver()).product.name == "Fernet"

    def test_get_resolver_follows_config(self, app):
        assert isinstance(catalog_service.get_resolver(), GlobalCatalogResolver)
        assert isinstance(catalog_service.get_resolver("event"), EventCatalogResolver)
        with pytest.raises(ValueError):
            catalog_service.get_resolver("galaxy")
