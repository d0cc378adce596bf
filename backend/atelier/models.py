from datetime import datetime, timezone
from typing import Literal

from pydantic import EmailStr
from sqlalchemy import JSON, DateTime
from sqlmodel import Field, SQLModel


def get_datetime_utc() -> datetime:
    return datetime.now(timezone.utc)


SeriesStatus = Literal["rascunho", "publicada", "pausada"]
TattooOrigin = Literal["manual", "ia"]


# Storage table: one row per document, addressed by its full path
# (e.g. "series/abc/modulos/def/tatuagens/ghi").
class DocumentRecord(SQLModel, table=True):
    __tablename__ = "document"

    path: str = Field(primary_key=True, max_length=1024)
    collection: str = Field(index=True, max_length=1024)
    doc_id: str = Field(index=True, max_length=128)
    data: dict = Field(default_factory=dict, sa_type=JSON)
    created_at: datetime = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
        index=True,
    )
    updated_at: datetime = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
        index=True,
    )


# Users

class UserProfile(SQLModel):
    id: str
    display_name: str | None = None
    email: EmailStr | None = None
    photo_url: str | None = None


class AuthContext(SQLModel):
    current_user: UserProfile | None = None
    is_loading: bool = False


class Token(SQLModel):
    access_token: str
    token_type: str = "bearer"


class TokenPayload(SQLModel):
    sub: str | None = None
    jti: str | None = None


class ProviderSignIn(SQLModel):
    access_token: str


class Message(SQLModel):
    message: str


# Series

class SeriesBase(SQLModel):
    titulo: str = Field(default="", max_length=255)
    descricao: str = ""
    publico_alvo: str = ""
    preco: float = Field(default=0, ge=0)
    preco_promocional: float | None = Field(default=None, ge=0)
    status: SeriesStatus = "rascunho"
    capa_url: str = ""
    tags_gerais: list[str] = Field(default_factory=list)


class SeriesCreate(SQLModel):
    """Fields collected by the creation form."""
    titulo: str = Field(max_length=255)
    descricao: str = ""
    publico_alvo: str = ""


# Properties to receive on update, all are optional
class SeriesUpdate(SQLModel):
    titulo: str | None = Field(default=None, max_length=255)
    descricao: str | None = None
    publico_alvo: str | None = None
    preco: float | None = Field(default=None, ge=0)
    preco_promocional: float | None = Field(default=None, ge=0)
    status: SeriesStatus | None = None
    capa_url: str | None = None
    tags_gerais: list[str] | None = None


class SeriesPublic(SeriesBase):
    id: str
    autor_id: str = ""
    modulos_count: int = 0
    tatuagens_count: int = 0
    data_criacao: datetime | None = None
    data_atualizacao: datetime | None = None


class SeriesSuggestionRequest(SQLModel):
    titulo: str = ""
    preco: float = Field(default=0, ge=0)
    descricao: str = ""
    publico_alvo: str = ""


# Modules

class ModuleDraft(SQLModel):
    """Title and description edited in the module form."""
    titulo: str = Field(default="", max_length=255)
    descricao: str = ""


class ModulePublic(ModuleDraft):
    id: str
    ordem: int = 0
    tatuagens_count: int = 0
    data_criacao: datetime | None = None
    data_atualizacao: datetime | None = None


# Tattoos

class TattooBase(SQLModel):
    titulo: str = ""
    descricao_contextual: str = ""
    tema: str = ""
    estilos: list[str] = Field(default_factory=list)
    significado_literal: str = ""
    significado_subjetivo: str = ""
    cores_usadas: list[str] = Field(default_factory=list)
    elementos_presentes: list[str] = Field(default_factory=list)
    tom_emocional: str = ""
    local_sugerido: str = ""
    simbolismo: str = ""
    referencia_cultural: str = ""
    tags_seo: list[str] = Field(default_factory=list)
    legenda_instagram: str = ""


class TattooForm(TattooBase):
    """Editable subset of a tattoo, pre-filled with its current values."""


class TattooUpdate(SQLModel):
    titulo: str | None = None
    descricao_contextual: str | None = None
    tema: str | None = None
    estilos: list[str] | None = None
    significado_literal: str | None = None
    significado_subjetivo: str | None = None
    cores_usadas: list[str] | None = None
    elementos_presentes: list[str] | None = None
    tom_emocional: str | None = None
    local_sugerido: str | None = None
    simbolismo: str | None = None
    referencia_cultural: str | None = None
    tags_seo: list[str] | None = None
    legenda_instagram: str | None = None


class TattooPublic(TattooBase):
    id: str
    capa_url: str = ""
    curtidas: int = 0
    comentarios_count: int = 0
    compartilhamentos: int = 0
    origem: TattooOrigin = "manual"
    autor_id: str = ""
    data_criacao: datetime | None = None
    data_atualizacao: datetime | None = None


# Nested read models

class ModuleTree(ModulePublic):
    tatuagens: list[TattooPublic] = Field(default_factory=list)


class SeriesTree(SeriesPublic):
    modulos: list[ModuleTree] = Field(default_factory=list)
