"""Error taxonomy for the recognition engine."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class RecognitionErrorKind(Enum):
    UNSUPPORTED = "unsupported"
    NO_SPEECH = "no-speech"
    AUDIO_CAPTURE = "audio-capture"
    PERMISSION_DENIED = "not-allowed"
    NETWORK = "network"
    UNCLASSIFIED = "unclassified"
    SPURIOUS_ABORT = "aborted"
    RESTART_LIMIT = "restart-limit"


ERROR_MESSAGES = {
    RecognitionErrorKind.UNSUPPORTED: "A API de Reconhecimento de Fala não é suportada neste ambiente.",
    RecognitionErrorKind.NO_SPEECH: "Nenhum som foi detectado. Verifique se seu microfone está funcionando.",
    RecognitionErrorKind.AUDIO_CAPTURE: "Falha ao capturar áudio. O microfone está sendo usado por outro aplicativo?",
    RecognitionErrorKind.PERMISSION_DENIED: "Permissão para usar o microfone foi negada ou bloqueada.",
    RecognitionErrorKind.NETWORK: "Ocorreu um erro de rede. Verifique sua conexão com a internet.",
    RecognitionErrorKind.RESTART_LIMIT: "O serviço de reconhecimento foi encerrado repetidamente. Tente novamente.",
}

_KINDS_BY_CODE = {
    "no-speech": RecognitionErrorKind.NO_SPEECH,
    "audio-capture": RecognitionErrorKind.AUDIO_CAPTURE,
    "not-allowed": RecognitionErrorKind.PERMISSION_DENIED,
    "network": RecognitionErrorKind.NETWORK,
    "restart-limit": RecognitionErrorKind.RESTART_LIMIT,
    "unsupported": RecognitionErrorKind.UNSUPPORTED,
}


@dataclass(frozen=True)
class RecognitionError:
    """A classified engine error with the message shown to the user."""
    kind: RecognitionErrorKind
    code: str
    message: str


class EngineUnsupportedError(RuntimeError):
    """Raised when a session is started without a usable recognition engine."""


def classify_error(code: str) -> Optional[RecognitionError]:
    """Classify a raw engine error code.

    Returns:
        The classified error, or None for a spurious abort (which callers ignore)
    """
    if code == RecognitionErrorKind.SPURIOUS_ABORT.value:
        return None

    kind = _KINDS_BY_CODE.get(code, RecognitionErrorKind.UNCLASSIFIED)
    if kind is RecognitionErrorKind.UNCLASSIFIED:
        message = f"Um erro inesperado ocorreu: {code}"
    else:
        message = ERROR_MESSAGES[kind]
    return RecognitionError(kind=kind, code=code, message=message)
