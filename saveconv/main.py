import base64
import hashlib
import logging
import os
import tempfile

from fastapi import Depends, FastAPI, File, HTTPException, UploadFile

from .config import Settings, get_settings
from .convert import INPUT_GATES, allowed_extensions, convert_pair
from .errors import ConversionError, IoFailure
from .models import ConvertedSave, ConvertResponse, HealthResponse

logging.basicConfig(
    level=get_settings().log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="n64-save-converter",
    description="Convert Project64 N64 saves to Gopher64 saves named after their ROM",
    version="0.1.0",
)


def _extension(upload: UploadFile, label: str) -> str:
    is_allowed = INPUT_GATES[label][0]
    ext = os.path.splitext(upload.filename or "")[1].lower()
    if not is_allowed(ext):
        raise HTTPException(
            status_code=422,
            detail=f"Only {allowed_extensions(label)} files are supported as {label}",
        )
    return ext


def _store(upload: UploadFile, path: str, label: str, limit: int, chunk_size: int) -> None:
    written = 0
    with open(path, "wb") as f:
        for chunk in iter(lambda: upload.file.read(chunk_size), b""):
            written += len(chunk)
            if written > limit:
                raise HTTPException(
                    status_code=422,
                    detail=f"{label} file '{upload.filename}' is too large (limit {limit} bytes)",
                )
            f.write(chunk)


@app.get("/health", response_model=HealthResponse)
def health():
    return {"ok": True}


@app.post("/convert", response_model=ConvertResponse)
def convert(
    save: UploadFile = File(...),
    rom: UploadFile = File(...),
    settings: Settings = Depends(get_settings),
):
    save_ext = _extension(save, "save")
    rom_ext = _extension(rom, "ROM")

    with tempfile.TemporaryDirectory(prefix="saveconv-") as workdir:
        save_path = os.path.join(workdir, "input" + save_ext)
        rom_path = os.path.join(workdir, "input" + rom_ext)
        out_dir = os.path.join(workdir, "out")
        os.mkdir(out_dir)

        _store(save, save_path, "save", settings.max_save_bytes, settings.chunk_size)
        _store(rom, rom_path, "ROM", settings.max_rom_bytes, settings.chunk_size)

        try:
            result = convert_pair(save_path, rom_path, out_dir, settings=settings)
        except ConversionError as e:
            # scratch paths mean nothing to the client
            detail = str(e).replace(workdir + os.sep, "")
            if isinstance(e, IoFailure):
                logger.error("conversion failed: %s", e)
                raise HTTPException(status_code=500, detail=detail)
            logger.info("rejected %s / %s: %s", save.filename, rom.filename, e)
            raise HTTPException(status_code=422, detail=detail)

        with open(result.output_path, "rb") as f:
            data = f.read()

    return ConvertResponse(
        converted_save=ConvertedSave(
            file_name=result.output_name,
            sha256=hashlib.sha256(data).hexdigest(),
            size=len(data),
            content_b64=base64.b64encode(data).decode("ascii"),
        ),
        cartridge=result.cartridge,
        report=result.report,
    )
