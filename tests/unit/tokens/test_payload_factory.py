"""
Tests unitaires PayloadFactory

Comportements testés:
    - Claims par défaut (iss, iat, nbf, exp, jti)
    - Claims protégés
    - Validation STRICT / REFRESH_EXEMPT
"""

import pytest

from src.tokens.errors import ConfigurationError, InvalidClaimError, TokenExpiredError
from src.tokens.interfaces import ClaimSet, ValidationMode
from src.tokens.payload_factory import DEFAULT_REQUIRED_CLAIMS, PayloadFactory, generate_jti


# ══════════════════════════════════════════════════════════════════════════════
# FIXTURES
# ══════════════════════════════════════════════════════════════════════════════


@pytest.fixture
def factory(clock):
    ids = iter(f"jti-{i}" for i in range(100))
    return PayloadFactory(
        issuer="http://example.com",
        ttl=60,
        clock=clock,
        id_generator=lambda: next(ids),
    )


# ══════════════════════════════════════════════════════════════════════════════
# TESTS CONSTRUCTION
# ══════════════════════════════════════════════════════════════════════════════


class TestMake:
    """Tests make()."""

    def test_default_claims(self, factory, now):
        """Defaults calculés depuis l'horloge et le ttl."""
        claims = factory.make({"sub": "user-1"})

        assert claims.iss == "http://example.com"
        assert claims.iat == now
        assert claims.nbf == now
        assert claims.exp == now + 3600
        assert claims.jti == "jti-0"
        assert claims.sub == "user-1"

    def test_custom_claims_preserved(self, factory):
        claims = factory.make({"sub": "user-1", "role": "admin", "scopes": ["a", "b"]})

        assert claims["role"] == "admin"
        assert claims.custom == {"role": "admin", "scopes": ["a", "b"]}

    def test_custom_claim_overrides_issuer(self, factory):
        claims = factory.make({"sub": "user-1", "iss": "other"})

        assert claims.iss == "other"

    def test_unique_jti(self):
        assert generate_jti() != generate_jti()
        assert len(generate_jti()) == 32

    def test_protected_claims_rejected(self, factory):
        """jti/iat/nbf/exp non surchargeables sans permission."""
        with pytest.raises(InvalidClaimError) as exc_info:
            factory.make({"sub": "user-1", "jti": "mine", "exp": 1})

        assert set(exc_info.value.violations) == {"jti", "exp"}

    def test_all_make_violations_reported_together(self, factory):
        """Claim protégé, claim manquant: une seule erreur les liste tous."""
        with pytest.raises(InvalidClaimError) as exc_info:
            factory.make({"jti": "mine"})

        assert set(exc_info.value.violations) == {"jti", "sub"}

    def test_type_errors_merged_with_protected_claims(self, factory):
        with pytest.raises(InvalidClaimError) as exc_info:
            factory.make({"sub": "user-1", "iss": 42, "nbf": 1})

        assert set(exc_info.value.violations) == {"nbf", "iss"}

    def test_permitted_protected_claim(self, factory, now):
        """permit=('iat',) → iat conservé (refresh)."""
        claims = factory.make({"sub": "user-1", "iat": now - 600}, permit=("iat",))

        assert claims.iat == now - 600
        assert claims.nbf == now

    def test_missing_subject_rejected(self, factory):
        """sub obligatoire."""
        with pytest.raises(InvalidClaimError) as exc_info:
            factory.make()

        assert "sub" in exc_info.value.violations

    def test_no_ttl_means_no_exp(self, clock):
        """ttl=None → pas d'exp, exp retiré des claims obligatoires."""
        factory = PayloadFactory(issuer="iss", ttl=None, clock=clock)

        claims = factory.make({"sub": "user-1"})

        assert claims.exp is None
        assert "exp" not in factory.required_claims

    def test_no_issuer_makes_iss_optional(self, clock):
        factory = PayloadFactory(clock=clock)

        claims = factory.make({"sub": "user-1"})

        assert claims.iss is None
        assert "iss" not in factory.required_claims


# ══════════════════════════════════════════════════════════════════════════════
# TESTS VALIDATION STRICT
# ══════════════════════════════════════════════════════════════════════════════


class TestValidateStrict:
    """Validation en mode strict."""

    def test_valid_claims(self, factory, make_claims):
        claims = make_claims()
        assert factory.validate(claims) is claims

    def test_expired_token_rejected(self, factory, make_claims, now):
        with pytest.raises(TokenExpiredError):
            factory.validate(make_claims(exp=now - 1, nbf=now - 3600, iat=now - 3600))

    def test_exp_equal_now_is_expired(self, factory, make_claims, now):
        with pytest.raises(TokenExpiredError):
            factory.validate(make_claims(exp=now, nbf=now - 10, iat=now - 10))

    def test_leeway_tolerates_clock_skew(self, clock, make_claims, now):
        factory = PayloadFactory(issuer="http://example.com", leeway=30, clock=clock)

        factory.validate(make_claims(exp=now - 10, nbf=now - 100, iat=now - 100))
        factory.validate(make_claims(iat=now + 20, nbf=now + 20, exp=now + 3600))

    def test_future_iat_and_nbf_all_listed(self, factory, make_claims, now):
        """Toutes les violations sont listées."""
        with pytest.raises(InvalidClaimError) as exc_info:
            factory.validate(make_claims(iat=now + 60, nbf=now + 60, exp=now + 3600))

        assert set(exc_info.value.violations) == {"iat", "nbf"}

    def test_missing_required_claims(self, factory, now):
        claims = ClaimSet(jti="foo", iat=now)

        with pytest.raises(InvalidClaimError) as exc_info:
            factory.validate(claims)

        assert set(exc_info.value.violations) == {"iss", "exp", "nbf", "sub"}

    def test_claim_errors_take_precedence_over_expiry(self, factory, now):
        claims = ClaimSet(jti="foo", iat=now - 7200, exp=now - 3600)

        with pytest.raises(InvalidClaimError):
            factory.validate(claims)


# ══════════════════════════════════════════════════════════════════════════════
# TESTS VALIDATION REFRESH
# ══════════════════════════════════════════════════════════════════════════════


class TestValidateRefreshExempt:
    """Validation en mode refresh."""

    def test_expired_token_accepted(self, factory, make_claims, now):
        claims = make_claims(exp=now - 60, nbf=now - 3600, iat=now - 3600)

        assert factory.validate(claims, ValidationMode.REFRESH_EXEMPT) is claims

    def test_exp_not_required(self, factory, make_claims):
        claims = make_claims(exp=None)

        factory.validate(claims, ValidationMode.REFRESH_EXEMPT)

    def test_refresh_window_exceeded(self, factory, make_claims, now):
        """iat + refresh_ttl dépassé → TokenExpiredError."""
        old = now - 20160 * 60 - 1
        claims = make_claims(iat=old, nbf=old, exp=old + 3600)

        with pytest.raises(TokenExpiredError) as exc_info:
            factory.validate(claims, ValidationMode.REFRESH_EXEMPT)

        assert "refreshed" in str(exc_info.value)

    def test_refresh_window_boundary(self, factory, make_claims, now):
        old = now - 20160 * 60
        claims = make_claims(iat=old, nbf=old, exp=old + 3600)

        factory.validate(claims, ValidationMode.REFRESH_EXEMPT)

    def test_mode_does_not_leak_between_calls(self, factory, make_claims, now):
        """Le mode est par appel: un refresh n'assouplit pas l'appel suivant."""
        claims = make_claims(exp=now - 60, nbf=now - 3600, iat=now - 3600)

        factory.validate(claims, ValidationMode.REFRESH_EXEMPT)
        with pytest.raises(TokenExpiredError):
            factory.validate(claims)


# ══════════════════════════════════════════════════════════════════════════════
# TESTS CONFIGURATION
# ══════════════════════════════════════════════════════════════════════════════


class TestFactoryConfig:
    """Réglages de la factory."""

    def test_defaults(self):
        factory = PayloadFactory(issuer="iss")

        assert factory.ttl == 60
        assert factory.refresh_ttl == 20160
        assert factory.leeway == 0
        assert factory.required_claims == DEFAULT_REQUIRED_CLAIMS

    def test_invalid_ttl(self):
        with pytest.raises(ConfigurationError):
            PayloadFactory(ttl=0)

    def test_negative_leeway(self):
        with pytest.raises(ConfigurationError):
            PayloadFactory(leeway=-1)

    def test_unknown_required_claim(self, factory):
        with pytest.raises(ConfigurationError):
            factory.set_required_claims(["sub", "role"])

    def test_exp_required_without_ttl(self, clock):
        factory = PayloadFactory(ttl=None, clock=clock)

        with pytest.raises(ConfigurationError):
            factory.set_required_claims(["sub", "exp"])

    def test_set_ttl_changes_expiry(self, factory, now):
        factory.set_ttl(5)

        assert factory.make({"sub": "u"}).exp == now + 300

    def test_explicit_exp_without_ttl_rejected(self, clock):
        """exp exigé explicitement + ttl None → ConfigurationError à la construction."""
        with pytest.raises(ConfigurationError):
            PayloadFactory(ttl=None, required_claims=("sub", "exp", "jti", "iat", "nbf"), clock=clock)

    def test_default_claims_without_ttl_drop_exp(self, clock):
        """Claims par défaut: exp retiré sans erreur."""
        factory = PayloadFactory(ttl=None, clock=clock)

        assert "exp" not in factory.required_claims

    def test_disabling_ttl_with_explicit_exp_rejected(self, clock):
        factory = PayloadFactory(required_claims=("sub", "exp", "jti"), clock=clock)

        with pytest.raises(ConfigurationError):
            factory.set_ttl(None)
        assert factory.ttl == 60

    def test_ttl_toggle_restores_exp_requirement(self, factory):
        factory.set_ttl(None).set_ttl(60)

        assert "exp" in factory.required_claims

    def test_token_without_exp_rejected_after_ttl_restored(self, factory, make_claims):
        """ttl rétabli → un jeton sans exp ne passe plus en mode strict."""
        factory.set_ttl(None)
        factory.validate(make_claims(exp=None))

        factory.set_ttl(60)

        with pytest.raises(InvalidClaimError) as exc_info:
            factory.validate(make_claims(exp=None))
        assert "exp" in exc_info.value.violations
