"""
Community login: RSA-encrypted password submission with CAPTCHA and
SteamGuard (emailed code) challenges.

    attempt = await auth.login("alice", "secret")
    await auth.complete(attempt, prompter)   # or fill fields and call attempt() yourself
"""

import logging
from typing import Optional

from cryptography.hazmat.primitives.asymmetric import padding, rsa
from pydantic import ValidationError

from geothermal.errors import DecodeError, EncryptionFailed, KeyFetchFailed, LoginFailed
from geothermal.models.auth import LoginAttempt, LoginResponse, LoginState, RSAKeyResponse
from geothermal.prompts import Prompter
from geothermal.transport.http import COMMUNITY_URL, HttpClient

logger = logging.getLogger(__name__)

RSA_KEY_URL = COMMUNITY_URL + "/login/getrsakey"
DO_LOGIN_URL = COMMUNITY_URL + "/login/dologin"
LOGOUT_URL = COMMUNITY_URL + "/login/logout"


def encrypt_password(password: str, modulus: int, exponent: int) -> bytes:
    """PKCS#1 v1.5 encrypt ``password`` with the (modulus, exponent) public key."""
    try:
        key = rsa.RSAPublicNumbers(exponent, modulus).public_key()
        return key.encrypt(password.encode("utf-8"), padding.PKCS1v15())
    except (ValueError, TypeError) as e:
        raise EncryptionFailed(f"could not encrypt password: {e}")


class Auth:
    def __init__(self, http: HttpClient):
        self._http = http

    async def get_rsa_key(self, username: str) -> tuple[int, int, str]:
        """Return (modulus, exponent, timestamp) of the login key for ``username``."""
        raw = await self._http.post_form(RSA_KEY_URL, {"username": username})
        try:
            rsp = RSAKeyResponse.model_validate(raw)
        except ValidationError as e:
            raise DecodeError(f"unexpected getrsakey response: {e}")
        if not rsp.success:
            raise KeyFetchFailed()
        try:
            modulus = int(rsp.publickey_mod, 16)
            exponent = int(rsp.publickey_exp, 16)
        except ValueError:
            raise KeyFetchFailed("getrsakey returned a malformed key")
        return modulus, exponent, rsp.timestamp

    async def login(self, username: str, password: str, computer_name: str = "") -> LoginAttempt:
        """Start a login and submit it once.

        The returned attempt may be incomplete; see LoginAttempt for what to
        fill in before calling attempt() again.
        """
        logger.debug("login %s: %s", username, LoginState.KEY_FETCH.value)
        modulus, exponent, timestamp = await self.get_rsa_key(username)

        logger.debug("login %s: %s with %d-bit key", username, LoginState.ENCRYPT.value, modulus.bit_length())
        encrypted = encrypt_password(password, modulus, exponent)

        attempt = LoginAttempt.start(username, encrypted, timestamp)
        attempt.computer_name = computer_name
        await self.attempt(attempt)
        return attempt

    async def attempt(self, attempt: LoginAttempt) -> LoginAttempt:
        """Submit ``attempt`` with whatever challenge answers it carries.

        Raises LoginFailed when the server neither completes the login nor
        asks for a CAPTCHA or SteamGuard code: retrying would only loop.
        """
        raw = await self._http.post_form(DO_LOGIN_URL, attempt.form())
        try:
            rsp = LoginResponse.model_validate(raw)
        except ValidationError as e:
            raise DecodeError(f"unexpected dologin response: {e}")

        attempt.apply(rsp)

        # Raises NoSessionToken: without it no later request is authorized.
        await self._http.ensure_session_id()

        logger.debug("login %s: %s", attempt.username, attempt.state.value)
        if attempt.state is LoginState.FAILED:
            raise LoginFailed(server_message=attempt.message)
        if attempt.complete:
            logger.info("logged in as %s", attempt.username)
        return attempt

    async def complete(self, attempt: LoginAttempt, prompter: Prompter) -> LoginAttempt:
        """Drive ``attempt`` to completion, asking ``prompter`` for each challenge."""
        while not attempt.complete:
            if attempt.message:
                prompter.show(attempt.message)

            if not attempt.needs_input:
                raise LoginFailed(server_message=attempt.message)

            if attempt.captcha:
                attempt.captcha_solution = prompter.captcha(attempt.captcha_url)
            if attempt.second_factor:
                attempt.second_factor_code = prompter.second_factor(attempt.email_domain)

            await self.attempt(attempt)
        return attempt

    async def logout(self, session_id: Optional[str] = None) -> None:
        sid = session_id or await self._http.ensure_session_id()
        # the reply is a redirect to the front page, not JSON
        await self._http.post(LOGOUT_URL, {"sessionid": sid})
        logger.info("logged out")
