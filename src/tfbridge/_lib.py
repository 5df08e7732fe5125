"""Library loading and FFI declarations for the TensorFlow C API."""

import ctypes
import ctypes.util
import importlib.util
import logging
import os
import platform
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

LIBRARY_PATH_ENV = "TFBRIDGE_LIBRARY_PATH"

# Global library instance
_lib: Optional[ctypes.CDLL] = None


class TF_Output(ctypes.Structure):
    """Mirror of the C ``TF_Output`` struct: an operation and an output index."""

    _fields_ = [("oper", ctypes.c_void_p), ("index", ctypes.c_int)]


def _get_lib_names() -> Tuple[str, ...]:
    """Get candidate library file names for the current platform."""
    system = platform.system()
    if system == "Darwin":
        return ("libtensorflow.2.dylib", "libtensorflow.dylib", "libtensorflow_cc.2.dylib")
    elif system == "Linux":
        return ("libtensorflow.so.2", "libtensorflow.so", "libtensorflow_cc.so.2")
    elif system == "Windows":
        return ("tensorflow.dll",)
    else:
        raise RuntimeError(f"Unsupported platform: {system}")


def _candidate_paths() -> List[Path]:
    """List library candidates in search order.

    Search order:
    1. ``TFBRIDGE_LIBRARY_PATH`` environment variable
    2. Package directory (for a bundled library)
    3. System library path
    4. An installed ``tensorflow`` wheel (located, never imported)
    """
    candidates: List[Path] = []

    override = os.environ.get(LIBRARY_PATH_ENV)
    if override:
        candidates.append(Path(override))

    package_dir = Path(__file__).parent
    for name in _get_lib_names():
        candidates.append(package_dir / name)

    system_lib = ctypes.util.find_library("tensorflow")
    if system_lib:
        candidates.append(Path(system_lib))

    spec = importlib.util.find_spec("tensorflow")
    if spec is not None and spec.submodule_search_locations:
        tf_dir = Path(list(spec.submodule_search_locations)[0])
        for name in _get_lib_names():
            candidates.append(tf_dir / name)
        candidates.append(tf_dir / "python" / "_pywrap_tensorflow_internal.so")

    return candidates


def _exports_c_api(lib: ctypes.CDLL) -> bool:
    """Check that both the graph and the eager C API are exported."""
    return hasattr(lib, "TF_NewGraph") and hasattr(lib, "TFE_NewContext")


def _declare_functions(lib: ctypes.CDLL) -> None:
    """Declare function signatures for type safety."""
    c_void_p = ctypes.c_void_p
    c_char_p = ctypes.c_char_p
    c_int = ctypes.c_int

    # ==========================================================================
    # Status functions
    # ==========================================================================

    lib.TF_Version.argtypes = []
    lib.TF_Version.restype = c_char_p

    lib.TF_NewStatus.argtypes = []
    lib.TF_NewStatus.restype = c_void_p

    lib.TF_DeleteStatus.argtypes = [c_void_p]
    lib.TF_DeleteStatus.restype = None

    lib.TF_GetCode.argtypes = [c_void_p]
    lib.TF_GetCode.restype = c_int

    lib.TF_Message.argtypes = [c_void_p]
    lib.TF_Message.restype = c_char_p

    # ==========================================================================
    # Tensor functions
    # ==========================================================================

    # TF_AllocateTensor
    lib.TF_AllocateTensor.argtypes = [
        c_int,  # dtype
        ctypes.POINTER(ctypes.c_int64),  # dims
        c_int,  # num_dims
        ctypes.c_size_t,  # len
    ]
    lib.TF_AllocateTensor.restype = c_void_p

    lib.TF_DeleteTensor.argtypes = [c_void_p]
    lib.TF_DeleteTensor.restype = None

    lib.TF_TensorType.argtypes = [c_void_p]
    lib.TF_TensorType.restype = c_int

    lib.TF_NumDims.argtypes = [c_void_p]
    lib.TF_NumDims.restype = c_int

    lib.TF_Dim.argtypes = [c_void_p, c_int]
    lib.TF_Dim.restype = ctypes.c_int64

    lib.TF_TensorByteSize.argtypes = [c_void_p]
    lib.TF_TensorByteSize.restype = ctypes.c_size_t

    lib.TF_TensorData.argtypes = [c_void_p]
    lib.TF_TensorData.restype = c_void_p

    # ==========================================================================
    # Graph and operation functions
    # ==========================================================================

    lib.TF_NewGraph.argtypes = []
    lib.TF_NewGraph.restype = c_void_p

    lib.TF_DeleteGraph.argtypes = [c_void_p]
    lib.TF_DeleteGraph.restype = None

    lib.TF_GraphOperationByName.argtypes = [c_void_p, c_char_p]
    lib.TF_GraphOperationByName.restype = c_void_p

    # TF_GraphGetTensorNumDims
    lib.TF_GraphGetTensorNumDims.argtypes = [
        c_void_p,  # graph
        TF_Output,  # output
        c_void_p,  # status
    ]
    lib.TF_GraphGetTensorNumDims.restype = c_int

    # TF_GraphGetTensorShape
    lib.TF_GraphGetTensorShape.argtypes = [
        c_void_p,  # graph
        TF_Output,  # output
        ctypes.POINTER(ctypes.c_int64),  # dims
        c_int,  # num_dims
        c_void_p,  # status
    ]
    lib.TF_GraphGetTensorShape.restype = None

    # TF_NewOperation
    lib.TF_NewOperation.argtypes = [
        c_void_p,  # graph
        c_char_p,  # op_type
        c_char_p,  # oper_name
    ]
    lib.TF_NewOperation.restype = c_void_p

    lib.TF_AddInput.argtypes = [c_void_p, TF_Output]
    lib.TF_AddInput.restype = None

    lib.TF_AddInputList.argtypes = [c_void_p, ctypes.POINTER(TF_Output), c_int]
    lib.TF_AddInputList.restype = None

    lib.TF_AddControlInput.argtypes = [c_void_p, c_void_p]
    lib.TF_AddControlInput.restype = None

    lib.TF_SetAttrType.argtypes = [c_void_p, c_char_p, c_int]
    lib.TF_SetAttrType.restype = None

    lib.TF_SetAttrTypeList.argtypes = [c_void_p, c_char_p, ctypes.POINTER(c_int), c_int]
    lib.TF_SetAttrTypeList.restype = None

    lib.TF_SetAttrShape.argtypes = [c_void_p, c_char_p, ctypes.POINTER(ctypes.c_int64), c_int]
    lib.TF_SetAttrShape.restype = None

    # TF_SetAttrShapeList
    lib.TF_SetAttrShapeList.argtypes = [
        c_void_p,  # desc
        c_char_p,  # attr_name
        ctypes.POINTER(ctypes.POINTER(ctypes.c_int64)),  # dims
        ctypes.POINTER(c_int),  # num_dims
        c_int,  # num_shapes
    ]
    lib.TF_SetAttrShapeList.restype = None

    lib.TF_SetAttrString.argtypes = [c_void_p, c_char_p, c_char_p, ctypes.c_size_t]
    lib.TF_SetAttrString.restype = None

    lib.TF_SetAttrInt.argtypes = [c_void_p, c_char_p, ctypes.c_int64]
    lib.TF_SetAttrInt.restype = None

    lib.TF_SetAttrBool.argtypes = [c_void_p, c_char_p, ctypes.c_ubyte]
    lib.TF_SetAttrBool.restype = None

    lib.TF_SetAttrTensor.argtypes = [c_void_p, c_char_p, c_void_p, c_void_p]
    lib.TF_SetAttrTensor.restype = None

    lib.TF_FinishOperation.argtypes = [c_void_p, c_void_p]
    lib.TF_FinishOperation.restype = c_void_p

    lib.TF_OperationName.argtypes = [c_void_p]
    lib.TF_OperationName.restype = c_char_p

    lib.TF_OperationOpType.argtypes = [c_void_p]
    lib.TF_OperationOpType.restype = c_char_p

    lib.TF_OperationNumOutputs.argtypes = [c_void_p]
    lib.TF_OperationNumOutputs.restype = c_int

    lib.TF_OperationOutputType.argtypes = [TF_Output]
    lib.TF_OperationOutputType.restype = c_int

    # ==========================================================================
    # Session functions
    # ==========================================================================

    lib.TF_NewSessionOptions.argtypes = []
    lib.TF_NewSessionOptions.restype = c_void_p

    lib.TF_DeleteSessionOptions.argtypes = [c_void_p]
    lib.TF_DeleteSessionOptions.restype = None

    lib.TF_NewSession.argtypes = [c_void_p, c_void_p, c_void_p]
    lib.TF_NewSession.restype = c_void_p

    lib.TF_CloseSession.argtypes = [c_void_p, c_void_p]
    lib.TF_CloseSession.restype = None

    lib.TF_DeleteSession.argtypes = [c_void_p, c_void_p]
    lib.TF_DeleteSession.restype = None

    # TF_SessionRun
    lib.TF_SessionRun.argtypes = [
        c_void_p,  # session
        c_void_p,  # run_options
        ctypes.POINTER(TF_Output),  # inputs
        ctypes.POINTER(c_void_p),  # input_values
        c_int,  # ninputs
        ctypes.POINTER(TF_Output),  # outputs
        ctypes.POINTER(c_void_p),  # output_values
        c_int,  # noutputs
        ctypes.POINTER(c_void_p),  # target_opers
        c_int,  # ntargets
        c_void_p,  # run_metadata
        c_void_p,  # status
    ]
    lib.TF_SessionRun.restype = None

    # ==========================================================================
    # Eager context and op functions
    # ==========================================================================

    lib.TFE_NewContextOptions.argtypes = []
    lib.TFE_NewContextOptions.restype = c_void_p

    lib.TFE_DeleteContextOptions.argtypes = [c_void_p]
    lib.TFE_DeleteContextOptions.restype = None

    lib.TFE_NewContext.argtypes = [c_void_p, c_void_p]
    lib.TFE_NewContext.restype = c_void_p

    lib.TFE_DeleteContext.argtypes = [c_void_p]
    lib.TFE_DeleteContext.restype = None

    lib.TFE_NewOp.argtypes = [c_void_p, c_char_p, c_void_p]
    lib.TFE_NewOp.restype = c_void_p

    lib.TFE_DeleteOp.argtypes = [c_void_p]
    lib.TFE_DeleteOp.restype = None

    lib.TFE_OpAddInput.argtypes = [c_void_p, c_void_p, c_void_p]
    lib.TFE_OpAddInput.restype = None

    lib.TFE_OpAddInputList.argtypes = [c_void_p, ctypes.POINTER(c_void_p), c_int, c_void_p]
    lib.TFE_OpAddInputList.restype = None

    lib.TFE_OpSetAttrType.argtypes = [c_void_p, c_char_p, c_int]
    lib.TFE_OpSetAttrType.restype = None

    lib.TFE_OpSetAttrTypeList.argtypes = [c_void_p, c_char_p, ctypes.POINTER(c_int), c_int]
    lib.TFE_OpSetAttrTypeList.restype = None

    # TFE_OpSetAttrShape
    lib.TFE_OpSetAttrShape.argtypes = [
        c_void_p,  # op
        c_char_p,  # attr_name
        ctypes.POINTER(ctypes.c_int64),  # dims
        c_int,  # num_dims
        c_void_p,  # status
    ]
    lib.TFE_OpSetAttrShape.restype = None

    # TFE_OpSetAttrShapeList
    lib.TFE_OpSetAttrShapeList.argtypes = [
        c_void_p,  # op
        c_char_p,  # attr_name
        ctypes.POINTER(ctypes.POINTER(ctypes.c_int64)),  # dims
        ctypes.POINTER(c_int),  # num_dims
        c_int,  # num_values
        c_void_p,  # status
    ]
    lib.TFE_OpSetAttrShapeList.restype = None

    lib.TFE_OpSetAttrString.argtypes = [c_void_p, c_char_p, c_char_p, ctypes.c_size_t]
    lib.TFE_OpSetAttrString.restype = None

    lib.TFE_OpSetAttrInt.argtypes = [c_void_p, c_char_p, ctypes.c_int64]
    lib.TFE_OpSetAttrInt.restype = None

    lib.TFE_OpSetAttrBool.argtypes = [c_void_p, c_char_p, ctypes.c_ubyte]
    lib.TFE_OpSetAttrBool.restype = None

    lib.TFE_OpSetAttrTensor.argtypes = [c_void_p, c_char_p, c_void_p, c_void_p]
    lib.TFE_OpSetAttrTensor.restype = None

    # TFE_Execute
    lib.TFE_Execute.argtypes = [
        c_void_p,  # op
        ctypes.POINTER(c_void_p),  # retvals
        ctypes.POINTER(c_int),  # num_retvals
        c_void_p,  # status
    ]
    lib.TFE_Execute.restype = None

    # ==========================================================================
    # Eager tensor handle functions
    # ==========================================================================

    lib.TFE_DeleteTensorHandle.argtypes = [c_void_p]
    lib.TFE_DeleteTensorHandle.restype = None

    lib.TFE_TensorHandleDataType.argtypes = [c_void_p]
    lib.TFE_TensorHandleDataType.restype = c_int

    lib.TFE_TensorHandleNumDims.argtypes = [c_void_p, c_void_p]
    lib.TFE_TensorHandleNumDims.restype = c_int

    lib.TFE_TensorHandleDim.argtypes = [c_void_p, c_int, c_void_p]
    lib.TFE_TensorHandleDim.restype = ctypes.c_int64

    lib.TFE_TensorHandleResolve.argtypes = [c_void_p, c_void_p]
    lib.TFE_TensorHandleResolve.restype = c_void_p


def _load_library() -> ctypes.CDLL:
    """Load the first candidate that exports the TensorFlow C API."""
    searched = []
    for path in _candidate_paths():
        if not path.exists():
            continue
        searched.append(str(path))
        try:
            lib = ctypes.CDLL(str(path))
        except OSError as e:
            logger.debug("Could not load %s: %s", path, e)
            continue
        if not _exports_c_api(lib):
            logger.debug("%s does not export the TensorFlow C API", path)
            continue
        _declare_functions(lib)
        logger.debug(
            "Loaded TensorFlow %s C API from %s", lib.TF_Version().decode(), path
        )
        return lib

    raise FileNotFoundError(
        "Could not find a TensorFlow C library "
        f"(searched: {', '.join(searched) or 'nothing found'}). "
        f"Install the 'tensorflow' extra or set {LIBRARY_PATH_ENV}."
    )


def get_lib() -> ctypes.CDLL:
    """Get the loaded library instance (singleton)."""
    global _lib
    if _lib is None:
        _lib = _load_library()
    return _lib


def is_available() -> bool:
    """Return True if the TensorFlow C library can be loaded."""
    try:
        get_lib()
    except (FileNotFoundError, RuntimeError):
        return False
    return True


def shape_list_arrays(
    shapes: Sequence[Optional[Sequence[int]]],
) -> Tuple[ctypes.Array, ctypes.Array, List[ctypes.Array]]:
    """Pack shapes into the ``(dims, num_dims)`` arrays used by shape-list attrs.

    ``None`` stands for a shape of unknown rank. The third element holds the
    per-shape buffers and must stay referenced until the native call returns.
    """
    n = len(shapes)
    dims = (ctypes.POINTER(ctypes.c_int64) * n)()
    num_dims = (ctypes.c_int * n)()
    buffers: List[ctypes.Array] = []
    for i, shape in enumerate(shapes):
        if shape is None:
            num_dims[i] = -1
            continue
        buf = (ctypes.c_int64 * len(shape))(*shape)
        buffers.append(buf)
        dims[i] = ctypes.cast(buf, ctypes.POINTER(ctypes.c_int64))
        num_dims[i] = len(shape)
    return dims, num_dims, buffers
