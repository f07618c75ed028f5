"""
Vision-model extraction of attestation fields.

Uses an OpenAI-compatible chat completions endpoint (Gemini by default) that
accepts the document as an inline data URI. Extraction never fails the
request: any upstream problem yields an empty, unreadable extraction.
"""
import base64
import json
from typing import Any, Dict, Optional, Protocol

import structlog
from openai import OpenAI

from attestcheck.config import get_settings
from attestcheck.exceptions import ExtractionServiceError
from attestcheck.verification_engine.models import AttestationExtraction

logger = structlog.get_logger(__name__)


class ExtractionOracle(Protocol):
    """Turns a raw attestation document into structured fields."""

    def extract(self, content: bytes, mime_type: str) -> AttestationExtraction:
        ...


class VisionExtractionOracle:
    """
    Attestation extractor backed by a vision-capable LLM.

    Runs in degraded mode (always returns an empty extraction) when no API
    key is configured.
    """

    TEMPERATURE = 0.0

    SYSTEM_PROMPT = """Tu es un expert des attestations d'assurance professionnelle du bâtiment (décennale, RC Pro).
Tu extrais uniquement les informations visibles dans le document, sans jamais en inventer.
Réponds uniquement avec un objet JSON valide."""

    USER_PROMPT = """Lis cette attestation d'assurance et extrais les champs suivants.
Laisse un champ vide ("") si l'information n'est pas visible.

- type_assurance: "decennale" (garantie décennale), "rc_pro" (responsabilité civile professionnelle) ou "autre"
- nom_entreprise_assuree: raison sociale de l'entreprise assurée
- siret_ou_siren: numéro SIRET ou SIREN de l'entreprise assurée
- adresse_assuree: adresse de l'entreprise assurée
- assureur: compagnie d'assurance
- numero_contrat: numéro de police ou de contrat
- date_debut_couverture: début de validité (JJ/MM/AAAA si possible)
- date_fin_couverture: fin de validité (JJ/MM/AAAA si possible)
- activites_couvertes: activités professionnelles couvertes
- document_lisible: true si le document est lisible et exploitable, false sinon

Réponds avec exactement ces clés:
{"type_assurance": "", "nom_entreprise_assuree": "", "siret_ou_siren": "", "adresse_assuree": "",
 "assureur": "", "numero_contrat": "", "date_debut_couverture": "", "date_fin_couverture": "",
 "activites_couvertes": "", "document_lisible": false}"""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[Any] = None,
    ):
        """
        Initialize the extractor.

        Args:
            api_key: Model API key (defaults to settings.extraction_api_key).
            base_url: OpenAI-compatible endpoint.
            model: Vision model name.
            timeout: Request timeout in seconds.
            client: Pre-built OpenAI client, mainly for tests.
        """
        settings = get_settings()
        self._model = model or settings.extraction_model
        self._client = client

        if self._client is None:
            api_key = api_key or settings.extraction_api_key
            if api_key:
                self._client = OpenAI(
                    api_key=api_key,
                    base_url=base_url or settings.extraction_base_url,
                    timeout=timeout or settings.extraction_timeout_seconds,
                    max_retries=0,
                )
                logger.info("Extraction oracle initialized", model=self._model)
            else:
                logger.warning("Extraction oracle running in degraded mode (no API key)")

    @property
    def available(self) -> bool:
        return self._client is not None

    def _build_messages(self, content: bytes, mime_type: str) -> list:
        encoded = base64.b64encode(content).decode("ascii")
        return [
            {"role": "system", "content": self.SYSTEM_PROMPT},
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": self.USER_PROMPT},
                    {
                        "type": "image_url",
                        "image_url": {"url": f"data:{mime_type};base64,{encoded}"},
                    },
                ],
            },
        ]

    def _parse_response(self, content: Optional[str]) -> AttestationExtraction:
        if not content:
            raise ExtractionServiceError(self._model, "Extraction model returned no content")

        try:
            data: Dict[str, Any] = json.loads(content)
        except json.JSONDecodeError as e:
            raise ExtractionServiceError(self._model, f"Extraction model returned invalid JSON: {e}")

        if not isinstance(data, dict):
            raise ExtractionServiceError(self._model, "Extraction model returned a non-object JSON")

        return AttestationExtraction.from_dict(data)

    def extract(self, content: bytes, mime_type: str) -> AttestationExtraction:
        """
        Extract attestation fields from a document.

        Args:
            content: Decoded document bytes.
            mime_type: Document media type (image/*, application/pdf).

        Returns:
            Extracted fields, or an empty unreadable extraction on any failure.
        """
        if self._client is None:
            return AttestationExtraction.empty()

        try:
            response = self._client.chat.completions.create(
                model=self._model,
                messages=self._build_messages(content, mime_type),
                temperature=self.TEMPERATURE,
                response_format={"type": "json_object"},
            )
            extraction = self._parse_response(response.choices[0].message.content)
        except Exception as e:
            logger.warning(
                "Attestation extraction failed",
                model=self._model,
                mime_type=mime_type,
                error=str(e),
                error_type=type(e).__name__,
            )
            return AttestationExtraction.empty()

        logger.info(
            "Attestation extracted",
            type_assurance=extraction.type_assurance.value,
            document_lisible=extraction.document_lisible,
        )
        return extraction


# Singleton instance
_oracle_instance: Optional[VisionExtractionOracle] = None


def get_extraction_oracle() -> VisionExtractionOracle:
    """Get singleton VisionExtractionOracle instance."""
    global _oracle_instance
    if _oracle_instance is None:
        _oracle_instance = VisionExtractionOracle()
    return _oracle_instance
