"""领域层模型与协议。

包含：
- models: Message / MessageRole / MessageState / ModelState / StreamingEvent。
- conversation: ConversationStore 协议与存储变更事件。
- model_gate: 模型加载状态机 ModelGate。
- exceptions: 业务异常类型定义。
"""
