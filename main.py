import logging
from typing import Optional

import uvicorn
from fastapi import FastAPI, File, Form, HTTPException, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from zpl_designer.api.models.schemas import (
    AddElementRequest,
    BarcodeType,
    CompileOptions,
    CompileRequest,
    DragRequest,
    ElementCompileRequest,
    ElementType,
    ImageEncodingResult,
    PreviewRequest,
    SectionName,
)
from zpl_designer.core import config
from zpl_designer.core.errors import (
    DuplicateElementIdError,
    ElementNotFoundError,
    EncodingError,
    PreviewError,
)
from zpl_designer.services.editor_state import LabelStore
from zpl_designer.services.image_encoder import image_to_zpl
from zpl_designer.services.line_print import generate_line_print
from zpl_designer.services.mock_data import data_sources_for
from zpl_designer.services.preview_client import LabelaryClient
from zpl_designer.services.zpl_generator import generate_element_zpl, generate_zpl
from zpl_designer.utils.helpers import timestamp

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# FastAPI app initialization
app = FastAPI(
    title="ZPL Label Designer API",
    description="Compiles header/body/footer label layouts into ZPL II for 203 dpi thermal printers. Supports symbolic template output, mock-data previews, line-print fallback and image-to-bitmap conversion.",
    version="1.0.0",
    docs_url="/docs",  # Swagger UI
    redoc_url="/redoc",  # ReDoc UI
    openapi_url="/openapi.json"  # OpenAPI schema
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

preview_client = LabelaryClient()


@app.exception_handler(DuplicateElementIdError)
async def duplicate_element_handler(request: Request, exc: DuplicateElementIdError):
    logger.warning(str(exc))
    return JSONResponse(status_code=409, content={"detail": str(exc)})


@app.exception_handler(ElementNotFoundError)
async def element_not_found_handler(request: Request, exc: ElementNotFoundError):
    logger.warning(str(exc))
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.post("/compile/zpl", summary="Compile label to ZPL",
          description="Compile a label definition. Template mode emits one symbolic body row; mock mode emits mock_items rows with substituted values.",
          responses={
              200: {
                  "description": "Successful compilation",
                  "content": {
                      "application/json": {
                          "example": {
                              "status": "success",
                              "zpl_content": "^XA\n^CI28\n^LL640\n^PW832\n^FO21,324^A0N,34,34^FD[Line.ProductCode]^FS\n^XZ",
                              "timestamp": "2024-05-14T12:00:00"
                          }
                      }
                  }
              },
              500: {"description": "Compilation failed"}
          })
async def compile_zpl(request: CompileRequest):
    """Compile a label definition to ZPL"""
    options = request.options or CompileOptions(mock_items=config.DEFAULT_MOCK_ITEMS)
    try:
        zpl_output = generate_zpl(
            request.label,
            mock_items=options.mock_items,
            use_mock_data=options.use_mock_data
        )
        logger.info(f"Compiled label (mock={options.use_mock_data}, {len(zpl_output)} chars)")
        return {
            "status": "success",
            "zpl_content": zpl_output,
            "timestamp": timestamp()
        }
    except Exception as e:
        logger.error(f"ZPL compilation failed: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/compile/element", summary="Compile one element",
          description="Return the ZPL fragment of a single element, as shown in the editor's properties panel")
async def compile_element(request: ElementCompileRequest):
    try:
        zpl_output = generate_element_zpl(
            request.element,
            use_mock_data=request.use_mock_data,
            offset_y_mm=request.offset_mm
        )
        return {"status": "success", "zpl_content": zpl_output}
    except Exception as e:
        logger.error(f"Element compilation failed: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/compile/line_print", summary="Render fixed-width text",
          description="Project the label onto a monospaced character grid for printers without graphics")
async def compile_line_print(request: CompileRequest):
    options = request.options or CompileOptions(mock_items=config.DEFAULT_MOCK_ITEMS)
    try:
        text_output = generate_line_print(
            request.label,
            mock_items=options.mock_items,
            use_mock_data=options.use_mock_data
        )
        return {
            "status": "success",
            "text_content": text_output,
            "timestamp": timestamp()
        }
    except Exception as e:
        logger.error(f"Line print rendering failed: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/encode_image", summary="Convert image to ZPL bitmap",
          description="Scale an uploaded image into the given box and encode it as a monochrome ^GFA payload",
          response_model=ImageEncodingResult,
          responses={
              400: {"description": "Invalid or undecodable image"},
              413: {"description": "Upload too large"},
              500: {"description": "Conversion failed"}
          })
async def encode_image(
    file: UploadFile = File(...),
    max_width: int = Form(config.IMAGE_MAX_WIDTH),
    max_height: int = Form(config.IMAGE_MAX_HEIGHT)
):
    """Handle image upload and convert to a ZPL graphic field payload"""
    if not (file.content_type or "").startswith("image/"):
        raise HTTPException(status_code=400, detail="Invalid file type. Only images are allowed.")
    if max_width < 1 or max_height < 1:
        raise HTTPException(status_code=400, detail="max_width and max_height must be positive")

    file_content = await file.read()
    if len(file_content) > config.MAX_UPLOAD_SIZE:
        raise HTTPException(status_code=413, detail="Uploaded image is too large")

    try:
        result = image_to_zpl(file_content, max_width=max_width, max_height=max_height)
        logger.info(f"Encoded {file.filename} as {result.width}x{result.height} ({result.total_bytes} bytes)")
        return result
    except EncodingError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Image conversion failed: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/preview_zpl", summary="Render preview image",
          description="Compile the label in mock mode and rasterize it through the rendering service",
          responses={
              200: {"content": {"image/png": {}}},
              502: {"description": "Rendering service failed"}
          })
def preview_zpl(request: PreviewRequest):
    """Generate a PNG preview of the mock-mode label.

    Declared synchronously so the blocking HTTP call to the rendering
    service runs in the threadpool instead of on the event loop.
    """
    try:
        png_data = preview_client.render_label(request.label, mock_items=request.mock_items)
    except PreviewError as e:
        raise HTTPException(status_code=502, detail=str(e))
    except Exception as e:
        logger.error(f"ZPL preview generation failed: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    return Response(
        content=png_data,
        media_type="image/png",
        headers={"Cache-Control": "no-cache, no-store, must-revalidate"}
    )


@app.get("/data_sources", summary="List bindable data sources",
         description="Data sources available to an element in the given section")
async def list_data_sources(
    section: SectionName = SectionName.BODY,
    element_type: Optional[ElementType] = None,
    barcode_type: Optional[BarcodeType] = None
):
    sources = data_sources_for(section, element_type, barcode_type)
    return {"status": "success", "data_sources": [source.model_dump() for source in sources]}


@app.post("/editor/add_element", summary="Add an element to a section",
          description="Apply an add-element command to the posted label and return the updated label",
          responses={409: {"description": "Element id already used in the section"}})
async def editor_add_element(request: AddElementRequest):
    store = LabelStore(request.label)
    store.add_element(request.section, request.element)
    return {"status": "success", "label": store.snapshot().model_dump(by_alias=True)}


@app.post("/editor/drag", summary="Apply a drag-and-drop event",
          description="Drop a toolbox item or move an existing element, snapping to the editor grid",
          responses={404: {"description": "Dragged element does not exist"}})
async def editor_drag(request: DragRequest):
    store = LabelStore(request.label)
    store.set_zoom(request.zoom)
    element = store.handle_drag(request.event)
    return {
        "status": "success",
        "element": element.model_dump(by_alias=True),
        "label": store.snapshot().model_dump(by_alias=True)
    }


if __name__ == "__main__":
    logger.info(f"Starting server on port {config.PORT}")
    uvicorn.run(app, host="0.0.0.0", port=config.PORT)
