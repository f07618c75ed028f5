"""
Pytest configuration and fixtures.
"""
import base64
import os
import uuid
from typing import Generator, List, Optional, Tuple

# Keep the application engine off the working directory
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from attestcheck.database import Base, get_db
from attestcheck.main import app
from attestcheck.middleware.rate_limit import limiter
from attestcheck.models.analysis import Analysis
from attestcheck.verification_engine.extraction import get_extraction_oracle
from attestcheck.verification_engine.models import (
    AttestationCategory,
    AttestationExtraction,
    QuoteReference,
)


# Create in-memory SQLite database for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class FakeOracle:
    """Extraction oracle returning a configurable record and recording calls."""

    def __init__(self, extraction: Optional[AttestationExtraction] = None):
        self.extraction = extraction or AttestationExtraction.empty()
        self.calls: List[Tuple[bytes, str]] = []

    def extract(self, content: bytes, mime_type: str) -> AttestationExtraction:
        self.calls.append((content, mime_type))
        return self.extraction


@pytest.fixture(scope="function")
def db_session() -> Generator[Session, None, None]:
    """Create a fresh database session for each test."""
    Base.metadata.create_all(bind=engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def fake_oracle() -> FakeOracle:
    return FakeOracle()


@pytest.fixture(scope="function")
def client(db_session: Session, fake_oracle: FakeOracle) -> Generator[TestClient, None, None]:
    """Create a test client with database and oracle overrides."""

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_extraction_oracle] = lambda: fake_oracle

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def reset_rate_limiter():
    """Each test starts with a fresh rate-limit budget."""
    limiter.reset()
    yield
    limiter.reset()


@pytest.fixture
def analysis(db_session: Session) -> Analysis:
    """An analysis record with no attestation yet."""
    record = Analysis(id=uuid.uuid4())
    db_session.add(record)
    db_session.commit()
    return record


@pytest.fixture
def quote() -> QuoteReference:
    return QuoteReference(
        nom_entreprise="Dupont Construction",
        siret="12345678900045",
        adresse="12 rue des Lilas 75011 Paris",
        categorie_travaux="Toiture",
    )


@pytest.fixture
def matching_extraction() -> AttestationExtraction:
    """Readable decennial attestation matching the ``quote`` fixture."""
    return AttestationExtraction(
        type_assurance=AttestationCategory.DECENNALE,
        nom_entreprise_assuree="SARL Dupont Construction",
        siret_ou_siren="12345678900012",
        adresse_assuree="12 rue des Lilas 75011 Paris",
        assureur="SMABTP",
        numero_contrat="DEC-2024-001",
        date_debut_couverture="01/01/2024",
        date_fin_couverture="31/12/2099",
        activites_couvertes="Couverture, charpente, zinguerie",
        document_lisible=True,
    )


@pytest.fixture
def sample_document() -> bytes:
    """Bytes standing in for an uploaded attestation scan."""
    return b"%PDF-1.4\n% attestation d'assurance decennale\n%%EOF"


@pytest.fixture
def request_payload(analysis: Analysis, sample_document: bytes, quote: QuoteReference) -> dict:
    """Valid analyze-attestation request body for the ``analysis`` record."""
    return {
        "analysisId": str(analysis.id),
        "attestationType": "decennale",
        "fileBase64": base64.b64encode(sample_document).decode("ascii"),
        "mimeType": "application/pdf",
        "quoteInfo": {
            "nom_entreprise": quote.nom_entreprise,
            "siret": quote.siret,
            "adresse": quote.adresse,
            "categorie_travaux": quote.categorie_travaux,
        },
    }
