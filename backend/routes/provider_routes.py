# backend/routes/provider_routes.py
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response

from backend.database.store import DomainStore, get_store
from backend.models.llm_model import ModelOut
from backend.models.provider_model import ProviderIn, ProviderOut, ProviderUpdate
from backend.services.security import public_provider
from backend.utils.jwt_handler import require_user

router = APIRouter(prefix="/api/providers", tags=["Providers"])

logger = logging.getLogger("provider_routes")


# ---------------- Helpers ----------------
def get_owned_provider(store: DomainStore, provider_id: str, user: dict) -> dict:
    provider = store.get_provider(provider_id)
    if not provider or provider.get("user_id") != user["user_id"]:
        raise HTTPException(status_code=404, detail="Provider not found")
    return provider


# ---------------- Routes ----------------
@router.get("", response_model=List[ProviderOut])
def list_providers(user=Depends(require_user), store: DomainStore = Depends(get_store)):
    return [public_provider(p) for p in store.get_providers(user["user_id"])]


@router.post("", response_model=ProviderOut, status_code=201)
def create_provider(body: ProviderIn, user=Depends(require_user), store: DomainStore = Depends(get_store)):
    provider = store.create_provider(user["user_id"], body.model_dump())
    logger.info(f"Provider {provider['id']} ({provider['base_url']}) created by {user['username']}")
    return public_provider(provider)


@router.patch("/{provider_id}", response_model=ProviderOut)
def update_provider(
    provider_id: str,
    body: ProviderUpdate,
    user=Depends(require_user),
    store: DomainStore = Depends(get_store),
):
    provider = get_owned_provider(store, provider_id, user)
    updated = store.update_provider(provider["id"], body.model_dump(exclude_unset=True))
    return public_provider(updated)


@router.delete("/{provider_id}", status_code=204)
def delete_provider(provider_id: str, user=Depends(require_user), store: DomainStore = Depends(get_store)):
    provider = get_owned_provider(store, provider_id, user)
    store.delete_provider(provider["id"])
    return Response(status_code=204)


#--- models registered under one provider ---#
@router.get("/{provider_id}/models", response_model=List[ModelOut])
def list_provider_models(provider_id: str, user=Depends(require_user), store: DomainStore = Depends(get_store)):
    provider = get_owned_provider(store, provider_id, user)
    return store.get_models(provider["id"])
