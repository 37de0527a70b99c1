"""聊天后端集成层。

该包下的模块负责：
- 定义后端抽象接口 (base)。
- 提供基于 httpx 的实现 (client)。
- 提供默认组装与视图序列化的服务函数 (service)。
"""
