"""Annotations Pydantic réutilisables pour validation.

Ce module centralise les types annotés pour assurer la cohérence
de la validation à travers tous les schémas Pydantic du service.
"""

from typing import Annotated

from pydantic import AfterValidator, EmailStr, Field, StringConstraints

# Caractères réservés par la syntaxe de filtre du backend (or=(...), ilike.*x*)
FILTER_RESERVED_CHARS = frozenset(",()*%\\:\"")


def _reject_filter_syntax(value: str) -> str:
    """Refuse les caractères qui modifieraient le filtre envoyé au backend."""
    found = sorted({char for char in value if char in FILTER_RESERVED_CHARS})
    if found:
        raise ValueError(f"Caractères non autorisés dans la recherche: {' '.join(found)}")
    return value


# Types de base avec validation
PositiveInt = Annotated[int, Field(gt=0, description="Entier positif")]
PageNumber = Annotated[int, Field(ge=1, description="Numéro de page (commence à 1)")]
PageSize = Annotated[int, Field(ge=1, le=100, description="Nombre d'éléments par page")]

# Chaînes avec contraintes
NonEmptyStr = Annotated[str, StringConstraints(min_length=1, strip_whitespace=True)]

# Recherche par sous-chaîne, sans syntaxe de filtre
SearchStr = Annotated[
    str,
    StringConstraints(strip_whitespace=True, max_length=100),
    AfterValidator(_reject_filter_syntax),
]

# Identifiants
RecordId = Annotated[int, Field(gt=0, description="Clé primaire")]
PublicId = Annotated[
    str,
    StringConstraints(min_length=1, max_length=64, strip_whitespace=True),
    Field(description="Identifiant public stable", examples=["6f1d2c3e-4b5a-6978-8a9b-0c1d2e3f4a5b"]),
]

# Métadonnées
Email = Annotated[EmailStr, Field(description="Adresse email valide")]
Description = Annotated[str, Field(max_length=2000, description="Description texte")]
Title = Annotated[str, Field(min_length=1, max_length=255, description="Titre")]

# Téléphone libre (saisie accueil)
PhoneNumber = Annotated[
    str,
    StringConstraints(max_length=32, strip_whitespace=True, pattern=r"^[0-9+()\-. ]*$"),
    Field(description="Numéro de téléphone", examples=["+1 555 0100"]),
]
