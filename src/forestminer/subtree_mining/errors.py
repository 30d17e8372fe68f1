class TreeMinerError(Exception):
    pass


class MalformedEncoding(TreeMinerError, ValueError):
    pass


class InvalidPosition(MalformedEncoding):
    pass


class UnsupportedMinSupport(TreeMinerError, ValueError):
    pass


class MinerInvariantError(TreeMinerError, RuntimeError):
    """内部不变量被破坏（缺失的出现列表、混用记录类型等），属于程序错误，不应被吞掉。"""


class MiningInterrupted(TreeMinerError):
    """时间预算 / 扩展上限 / should_continue 触发时抛出；不返回部分结果。"""
