"""
Tokens: JWT Signer

Signature et vérification des jetons via PyJWT.

Seule la signature (et exp en mode strict) est vérifiée ici: les
contrôles iat/nbf et la fenêtre de refresh relèvent du PayloadFactory.
exp est comparé à l'horloge injectée, pas à celle de PyJWT.
"""

from typing import Any, Dict, Optional

import jwt

from .clock import Clock, now_timestamp
from .errors import EncodingError, InvalidTokenError, TokenExpiredError
from .interfaces import ISigner


SYMMETRIC_ALGORITHMS = ("HS256", "HS384", "HS512")
ASYMMETRIC_ALGORITHMS = ("RS256", "RS384", "RS512", "ES256", "ES384", "ES512")
SUPPORTED_ALGORITHMS = SYMMETRIC_ALGORITHMS + ASYMMETRIC_ALGORITHMS


class JWTSigner(ISigner):
    """
    Signer JWT.

    HS*: secret partagé. RS*/ES*: clé privée pour signer, clé publique
    pour vérifier (objets cryptography ou PEM).

    Example:
        signer = JWTSigner("change-me")
        token = signer.encode({"sub": "user-1", "jti": "abc"})
        claims = signer.decode(token)
    """

    def __init__(
        self,
        key: Any,
        algorithm: str = "HS256",
        verification_key: Optional[Any] = None,
        leeway: int = 0,
        clock: Optional[Clock] = None,
    ):
        """
        Args:
            key: Secret (HS*) ou clé privée (RS*/ES*)
            algorithm: Algorithme JWT (défaut: HS256)
            verification_key: Clé publique (RS*/ES*), défaut: key
            leeway: Tolérance horloge en secondes pour exp
            clock: Source de temps (secondes)
        """
        if algorithm not in SUPPORTED_ALGORITHMS:
            raise ValueError(f"Unsupported algorithm: {algorithm}")
        if not key:
            raise ValueError("Signing key cannot be empty")

        self.algorithm = algorithm
        self.leeway = leeway
        self._clock = clock or now_timestamp
        self._key = key
        self._verification_key = verification_key if verification_key is not None else key

    def encode(self, claims: Dict[str, Any]) -> str:
        """
        Signe les claims.

        Raises:
            EncodingError: Clé ou claims non sérialisables
        """
        try:
            return jwt.encode(dict(claims), self._key, algorithm=self.algorithm)
        except (jwt.PyJWTError, TypeError, ValueError) as e:
            raise EncodingError(f"Could not create token: {e}")

    def decode(self, token: str, verify_exp: bool = True) -> Dict[str, Any]:
        """
        Vérifie la signature et retourne les claims.

        Raises:
            TokenExpiredError: exp dépassé (verify_exp uniquement)
            InvalidTokenError: Signature/structure invalide
        """
        try:
            payload = jwt.decode(
                token,
                self._verification_key,
                algorithms=[self.algorithm],
                leeway=self.leeway,
                options={
                    "verify_signature": True,
                    "verify_exp": False,
                    "verify_nbf": False,
                    "verify_iat": False,
                    "verify_aud": False,
                    "verify_iss": False,
                    # sub est opaque (int accepté)
                    "verify_sub": False,
                    "verify_jti": False,
                },
            )
        except jwt.InvalidTokenError as e:
            raise InvalidTokenError(f"Could not decode token: {e}")

        if verify_exp:
            exp = payload.get("exp")
            if isinstance(exp, (int, float)) and not isinstance(exp, bool) and exp <= self._clock() - self.leeway:
                raise TokenExpiredError("Token has expired")
        return payload
