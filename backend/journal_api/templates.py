"""
Journal API — Admin Panel Pages
================================

Static HTML for the admin login form and dashboard. Both pages talk to the
JSON endpoints under /admin with fetch(); the browser carries the
admin_session cookie automatically.
"""

_STYLE = """
    body { font-family: system-ui, sans-serif; margin: 0; padding: 20px; background: #f5f5f5; }
    .card { background: white; padding: 24px; border-radius: 8px; box-shadow: 0 2px 6px rgba(0,0,0,0.1); margin-bottom: 20px; }
    .form-group { margin-bottom: 16px; }
    label { display: block; margin-bottom: 6px; font-weight: 500; }
    input { width: 100%; padding: 10px; border: 1px solid #ddd; border-radius: 4px; box-sizing: border-box; }
    input[type=checkbox] { width: auto; margin-right: 8px; }
    .btn { padding: 8px 16px; border: none; border-radius: 4px; cursor: pointer; color: white; }
    .btn-primary { background: #007bff; }
    .btn-danger { background: #dc3545; }
    .error { color: #dc3545; margin-top: 10px; }
    table { width: 100%; border-collapse: collapse; }
    th, td { padding: 10px; text-align: left; border-bottom: 1px solid #ddd; }
    .tag { padding: 2px 8px; border-radius: 4px; font-size: 12px; margin-right: 4px; }
    .tag.admin { background: #d1ecf1; color: #0c5460; }
    .tag.verified { background: #d4edda; color: #155724; }
    .tag.unverified { background: #f8d7da; color: #721c24; }
"""

LOGIN_PAGE = f"""<!DOCTYPE html>
<html>
<head>
  <title>Admin Login - Journal API</title>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <style>{_STYLE}
    .login {{ max-width: 400px; margin: 10vh auto; }}
  </style>
</head>
<body>
  <div class="card login">
    <h1>Admin Login</h1>
    <form id="loginForm">
      <div class="form-group">
        <label for="email">Email</label>
        <input type="email" id="email" name="email" required>
      </div>
      <div class="form-group">
        <label for="password">Password</label>
        <input type="password" id="password" name="password" required>
      </div>
      <button type="submit" class="btn btn-primary">Sign in</button>
      <div id="error" class="error" style="display: none;"></div>
    </form>
  </div>
  <script>
    document.getElementById('loginForm').addEventListener('submit', async (e) => {{
      e.preventDefault();
      const data = new FormData(e.target);
      const errorDiv = document.getElementById('error');
      errorDiv.style.display = 'none';
      try {{
        const response = await fetch('/admin/auth', {{
          method: 'POST',
          headers: {{ 'Content-Type': 'application/json' }},
          body: JSON.stringify({{ email: data.get('email'), password: data.get('password') }})
        }});
        if (response.ok) {{
          window.location.href = '/admin';
        }} else {{
          const body = await response.json();
          errorDiv.textContent = body.error || 'Login failed';
          errorDiv.style.display = 'block';
        }}
      }} catch (err) {{
        errorDiv.textContent = 'Login failed: ' + err.message;
        errorDiv.style.display = 'block';
      }}
    }});
  </script>
</body>
</html>
"""

DASHBOARD_PAGE = f"""<!DOCTYPE html>
<html>
<head>
  <title>Admin Dashboard - Journal API</title>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <style>{_STYLE}
    .container {{ max-width: 1100px; margin: 0 auto; }}
    .header {{ display: flex; justify-content: space-between; align-items: center; }}
  </style>
</head>
<body>
  <div class="container">
    <div class="card header">
      <h1>Journal API - Admin Dashboard</h1>
      <button onclick="logout()" class="btn btn-danger">Log out</button>
    </div>

    <div class="card">
      <h2>Create user</h2>
      <form id="createUserForm">
        <div class="form-group">
          <label for="email">Email</label>
          <input type="email" id="email" name="email" required>
        </div>
        <div class="form-group">
          <label for="name">Name</label>
          <input type="text" id="name" name="name" required>
        </div>
        <div class="form-group">
          <small>The user sets a password on first sign-in.</small>
        </div>
        <div class="form-group">
          <label><input type="checkbox" id="isAdmin" name="isAdmin">Grant admin rights</label>
        </div>
        <button type="submit" class="btn btn-primary">Create</button>
      </form>
    </div>

    <div class="card">
      <h2>Users</h2>
      <button onclick="loadUsers()" class="btn btn-primary">Refresh</button>
      <div id="usersTable">Loading...</div>
    </div>
  </div>

  <script>
    function escapeHtml(value) {{
      const div = document.createElement('div');
      div.textContent = value == null ? '' : String(value);
      return div.innerHTML;
    }}

    async function loadUsers() {{
      const target = document.getElementById('usersTable');
      try {{
        const response = await fetch('/admin/users');
        if (!response.ok) {{
          const body = await response.json();
          target.textContent = body.error || 'Could not load users';
          return;
        }}
        const users = await response.json();
        const rows = users.map(u => `
          <tr>
            <td>${{escapeHtml(u.id.substring(0, 8))}}...</td>
            <td>${{escapeHtml(u.name)}}</td>
            <td>${{escapeHtml(u.email)}}</td>
            <td>
              ${{u.isAdmin ? '<span class="tag admin">admin</span>' : ''}}
              ${{u.emailVerified ? '<span class="tag verified">verified</span>' : '<span class="tag unverified">unverified</span>'}}
            </td>
            <td>${{new Date(u.createdAt).toLocaleString()}}</td>
            <td><button class="btn btn-danger" onclick="deleteUser('${{escapeHtml(u.id)}}')">Delete</button></td>
          </tr>`).join('');
        target.innerHTML = `<table>
          <thead><tr><th>ID</th><th>Name</th><th>Email</th><th>Status</th><th>Created</th><th></th></tr></thead>
          <tbody>${{rows}}</tbody></table>`;
      }} catch (err) {{
        target.textContent = 'Error: ' + err.message;
      }}
    }}

    async function deleteUser(userId) {{
      if (!confirm('Delete this user and all of their data? This cannot be undone.')) return;
      const response = await fetch(`/admin/users/${{userId}}`, {{ method: 'DELETE' }});
      if (response.ok) {{
        loadUsers();
      }} else {{
        const body = await response.json();
        alert('Delete failed: ' + body.error);
      }}
    }}

    document.getElementById('createUserForm').addEventListener('submit', async (e) => {{
      e.preventDefault();
      const data = new FormData(e.target);
      const response = await fetch('/admin/users', {{
        method: 'POST',
        headers: {{ 'Content-Type': 'application/json' }},
        body: JSON.stringify({{
          email: data.get('email'),
          name: data.get('name'),
          isAdmin: data.get('isAdmin') === 'on'
        }})
      }});
      if (response.ok) {{
        e.target.reset();
        loadUsers();
      }} else {{
        const body = await response.json();
        alert('Create failed: ' + body.error);
      }}
    }});

    async function logout() {{
      await fetch('/admin/logout', {{ method: 'POST' }});
      window.location.href = '/admin/login';
    }}

    loadUsers();
  </script>
</body>
</html>
"""
