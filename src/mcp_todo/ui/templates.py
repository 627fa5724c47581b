"""HTML templates for the todo list artifact.

Built with ``string.Template`` so CSS and script braces need no escaping.
Placeholders are filled by :mod:`mcp_todo.ui.artifact`; every value inserted
into markup is escaped there.
"""

from string import Template

PAGE = Template(
    """<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <title>$title</title>
  <style>
    * { margin: 0; padding: 0; box-sizing: border-box; }
    body {
      font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
      background: linear-gradient(135deg, #667eea 0%, #764ba2 100%);
    }
    .container { background: white; }
    .header {
      background: linear-gradient(135deg, #667eea 0%, #764ba2 100%);
      color: white;
      padding: 30px;
      text-align: center;
    }
    .header h1 { font-size: 28px; font-weight: 700; margin-bottom: 8px; }
    .header p { opacity: 0.9; font-size: 14px; }
    .stats {
      display: flex;
      justify-content: space-around;
      padding: 20px;
      background: #f8f9fa;
      border-bottom: 2px solid #e9ecef;
    }
    .stat-item { text-align: center; }
    .stat-number { font-size: 32px; font-weight: 700; color: #667eea; }
    .stat-label {
      font-size: 11px;
      color: #6c757d;
      margin-top: 5px;
      text-transform: uppercase;
      letter-spacing: 0.5px;
      font-weight: 600;
    }
    .todo-list { padding: 20px; max-height: 600px; overflow-y: auto; }
    .todo-item {
      background: white;
      border: 2px solid #e9ecef;
      border-radius: 12px;
      padding: 20px;
      margin-bottom: 15px;
      display: flex;
      align-items: center;
      justify-content: space-between;
      transition: all 0.3s ease;
      animation: fadeIn 0.3s ease;
    }
    .todo-item:hover { border-color: #667eea; box-shadow: 0 4px 12px rgba(102, 126, 234, 0.15); }
    .todo-content { flex: 1; display: flex; align-items: center; gap: 15px; }
    .todo-text { font-size: 16px; color: #212529; font-weight: 500; }
    .todo-item.completed .todo-text { text-decoration: line-through; color: #6c757d; }
    .todo-meta { display: flex; flex-direction: column; align-items: flex-end; gap: 10px; }
    .todo-id {
      font-size: 11px;
      color: #6c757d;
      background: #e9ecef;
      padding: 4px 10px;
      border-radius: 12px;
      font-weight: 700;
    }
    .todo-date { font-size: 12px; color: #6c757d; }
    .todo-actions { display: flex; gap: 8px; }
    .btn {
      padding: 10px 18px;
      border: none;
      border-radius: 8px;
      font-size: 13px;
      font-weight: 600;
      cursor: pointer;
      text-transform: uppercase;
      letter-spacing: 0.3px;
    }
    .btn-toggle { background: #667eea; color: white; }
    .btn-toggle:hover { background: #5568d3; }
    .btn-delete { background: #dc3545; color: white; }
    .btn-delete:hover { background: #c82333; }
    .edit-input {
      width: 100%;
      padding: 8px;
      border: 2px solid #667eea;
      border-radius: 8px;
      font-size: 16px;
    }
    .empty-state { text-align: center; padding: 60px 20px; color: #6c757d; }
    .empty-state h3 { font-size: 24px; margin-bottom: 10px; color: #495057; font-weight: 600; }
    .footer { padding: 10px 20px; font-size: 11px; color: #adb5bd; text-align: right; }
    @keyframes fadeIn {
      from { opacity: 0; transform: translateY(10px); }
      to { opacity: 1; transform: translateY(0); }
    }
  </style>
</head>
<body>
  <div class="container">
    <div class="header">
      <h1>$title</h1>
      <p>$description</p>
    </div>
    <div class="stats">
      <div class="stat-item">
        <div class="stat-number" id="stat-total">$total</div>
        <div class="stat-label">Total Tasks</div>
      </div>
      <div class="stat-item">
        <div class="stat-number" id="stat-completed">$completed</div>
        <div class="stat-label">Completed</div>
      </div>
    </div>
    <div class="todo-list" id="todo-list">
$items
    </div>
    <div class="footer">Rendered $rendered_at</div>
  </div>
  <script>
    const TODOS_DATA = $todos_json;
$script
  </script>
</body>
</html>
"""
)

EMPTY_STATE = """      <div class="empty-state">
        <h3>No Todos Yet</h3>
        <p>Create your first todo to get started!</p>
      </div>"""

ITEM = Template(
    """      <div class="todo-item$completed_class" id="todo-$id" data-todo-id="$id">
        <div class="todo-content" id="todo-text-$id">
          <span class="todo-id">#$id</span>
          <div class="todo-text" id="view-mode-$id">$text</div>
          <div class="todo-content" id="edit-mode-$id" style="display: none; flex: 1;">
            <input type="text" class="edit-input" id="edit-input-$id" value="$text">
          </div>
        </div>
        <div class="todo-meta">
          <span class="todo-date">$created</span>
          <div class="todo-actions" id="edit-actions-$id" style="display: none;">
            <button class="btn btn-toggle" onclick="saveEdit($id)">Save</button>
            <button class="btn btn-delete" onclick="cancelEdit($id)">Cancel</button>
          </div>
          <div class="todo-actions" id="view-actions-$id">
            <button class="btn btn-toggle" onclick="toggleTodo($id)">$toggle_label</button>
            <button class="btn btn-toggle" onclick="startEdit($id)">Edit</button>
            <button class="btn btn-delete" onclick="deleteTodo($id)">Delete</button>
          </div>
        </div>
      </div>"""
)

# Runs inside the sandboxed frame. Each interaction posts exactly one message
# to the embedding host and never waits for a reply.
SCRIPT = """    var messageCounter = 0;

    function findTodo(id) {
      return TODOS_DATA.find(function (t) { return t.id === id; });
    }

    function newMessageId() {
      messageCounter += 1;
      return 'msg-' + Date.now() + '-' + messageCounter + '-' + Math.random().toString(36).slice(2, 10);
    }

    function sendToParent(type, payload) {
      var messageId = newMessageId();
      window.parent.postMessage({ type: type, messageId: messageId, payload: payload }, '*');
      return messageId;
    }

    function showMode(id, editing) {
      document.getElementById('view-mode-' + id).style.display = editing ? 'none' : 'block';
      document.getElementById('view-actions-' + id).style.display = editing ? 'none' : 'flex';
      document.getElementById('edit-mode-' + id).style.display = editing ? 'flex' : 'none';
      document.getElementById('edit-actions-' + id).style.display = editing ? 'flex' : 'none';
    }

    function startEdit(id) {
      if (!document.getElementById('todo-' + id)) return;
      showMode(id, true);
      var input = document.getElementById('edit-input-' + id);
      if (input) {
        input.focus();
        input.select();
      }
    }

    function cancelEdit(id) {
      var todo = findTodo(id);
      var input = document.getElementById('edit-input-' + id);
      if (input && todo) {
        input.value = todo.text;
      }
      showMode(id, false);
    }

    function saveEdit(id) {
      var input = document.getElementById('edit-input-' + id);
      var text = input ? input.value.trim() : '';
      if (!text) {
        cancelEdit(id);
        return;
      }
      sendToParent('tool', { operationName: 'todo_update', id: id, text: text });
    }

    function toggleTodo(id) {
      var todo = findTodo(id);
      if (!todo) return;
      sendToParent('tool', { operationName: 'todo_update', id: id, completed: !todo.completed });
    }

    function deleteTodo(id) {
      sendToParent('tool', { operationName: 'todo_delete', id: id });
    }

    document.addEventListener('keydown', function (e) {
      if (!e.target || !e.target.id || e.target.id.indexOf('edit-input-') !== 0) return;
      var id = parseInt(e.target.id.replace('edit-input-', ''), 10);
      if (e.key === 'Enter') {
        e.preventDefault();
        saveEdit(id);
      } else if (e.key === 'Escape') {
        e.preventDefault();
        cancelEdit(id);
      }
    });"""
