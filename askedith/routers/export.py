from fastapi import APIRouter
from fastapi.responses import FileResponse
from fastapi import HTTPException
from pydantic import BaseModel
from askedith.config import settings
from askedith.services import export_docx
from askedith.services.wizard import WizardState
import os, uuid

router = APIRouter()

class ExportRequest(BaseModel):
    state: WizardState

@router.post("/docx")
def export_docx_endpoint(req: ExportRequest):
    job_id = str(uuid.uuid4())
    outpath = export_docx.build_results_doc(req.state, job_id=job_id)
    url = f"/export/files/{os.path.basename(outpath)}"
    return {"downloadUrl": url, "jobId": job_id}

@router.get("/files/{filename}")
def download(filename: str):
    path = os.path.join(settings.EXPORT_DIR, os.path.basename(filename))
    if not filename.endswith(".docx") or not os.path.exists(path):
        raise HTTPException(status_code=404, detail="export not found")
    return FileResponse(path, media_type="application/vnd.openxmlformats-officedocument.wordprocessingml.document",
                        filename=os.path.basename(path))
