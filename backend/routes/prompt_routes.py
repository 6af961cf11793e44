# backend/routes/prompt_routes.py
from fastapi import APIRouter, Depends, HTTPException, Response

from backend.database.store import DomainStore, get_store
from backend.models.prompt_model import PromptIn, PromptUpdate
from backend.utils.jwt_handler import require_user

router = APIRouter(prefix="/api/prompts", tags=["Prompts"])


def get_owned_prompt(store: DomainStore, prompt_id: str, user: dict) -> dict:
    prompt = store.get_prompt(prompt_id)
    if not prompt or prompt.get("user_id") != user["user_id"]:
        raise HTTPException(status_code=404, detail="Prompt not found")
    return prompt


#--- own prompts plus the ones other users share ---#
@router.get("")
def list_prompts(user=Depends(require_user), store: DomainStore = Depends(get_store)):
    return store.get_prompts(user["user_id"])


@router.post("", status_code=201)
def create_prompt(body: PromptIn, user=Depends(require_user), store: DomainStore = Depends(get_store)):
    return store.create_prompt(user["user_id"], body.model_dump())


@router.patch("/{prompt_id}")
def update_prompt(
    prompt_id: str,
    body: PromptUpdate,
    user=Depends(require_user),
    store: DomainStore = Depends(get_store),
):
    prompt = get_owned_prompt(store, prompt_id, user)
    return store.update_prompt(prompt["id"], body.model_dump(exclude_unset=True))


@router.delete("/{prompt_id}", status_code=204)
def delete_prompt(prompt_id: str, user=Depends(require_user), store: DomainStore = Depends(get_store)):
    prompt = get_owned_prompt(store, prompt_id, user)
    store.delete_prompt(prompt["id"])
    return Response(status_code=204)
