"""项目内使用的自定义异常定义。"""


class ResizerError(Exception):
    """基础异常类型。"""


class InvalidConfigurationError(ResizerError):
    """配置不合法时抛出。"""


class RunStateError(ResizerError):
    """批处理状态不允许当前操作时抛出（运行中、列表为空、未设置输出目录）。"""


class ItemProcessingError(ResizerError):
    """单个文件处理失败，只影响该文件本身。"""

    kind = "ItemProcessingError"


class LoadFailed(ItemProcessingError):
    """源文件无法读取或不是可识别的图片。"""

    kind = "LoadFailed"


class ResizeFailed(ItemProcessingError):
    """尺寸不合法或画布分配失败。"""

    kind = "ResizeFailed"


class ConversionFailed(ItemProcessingError):
    """PNG / JPEG 编码失败。"""

    kind = "ConversionFailed"


class EncodingFailed(ItemProcessingError):
    """WebP 编码失败。"""

    kind = "EncodingFailed"


class WriteFailed(ItemProcessingError):
    """输出写入失败。"""

    kind = "WriteFailed"
