"""
Runtime package: the state graph index, invocation bookkeeping and the
asynchronous interpreter.
"""
