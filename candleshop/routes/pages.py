# candleshop/routes/pages.py
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from candleshop.database import get_db
from candleshop.models.content import Page
from candleshop.models.users import User
from candleshop.schemas.content import PageIn, PageOut
from candleshop.utils.audit import write_log, client_ip
from candleshop.utils.tokenJWT import admin_required

router = APIRouter(prefix="/api/pages", tags=["Pages"])

PageType = Literal["about", "contact", "blog", "shipping-returns"]


@router.get("/{page_type}", response_model=PageOut)
def get_page(page_type: PageType, db: Session = Depends(get_db)):
    page = db.query(Page).filter(Page.type == page_type).first()
    if not page:
        raise HTTPException(status_code=404, detail="Page not found")
    return page


# Creates the page on first save, replaces title and content afterwards
@router.post("/{page_type}", response_model=PageOut)
def save_page(
    page_type: PageType,
    payload: PageIn,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required),
):
    page = db.query(Page).filter(Page.type == page_type).first()
    if page:
        page.title = payload.title
        page.content = payload.content
    else:
        page = Page(type=page_type, title=payload.title, content=payload.content)
        db.add(page)
    db.commit()
    db.refresh(page)

    write_log(db, user_id=current_user.id, action="PAGE_SAVE", resource="pages",
              status="SUCCESS", ip=client_ip(request), meta={"type": page_type})
    return page
